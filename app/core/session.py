# app/core/session.py
"""
Session provider: who is the current cart owner, and who wants to know
when that changes.

The API builds one provider per request from the bearer token
(see app/core/auth.py). Long-lived clients can instead bind a provider
to a Supabase client so login/logout events flow into it.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from supabase import Client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated user; `user_id` is Supabase auth.users.id."""

    user_id: uuid.UUID
    email: str | None = None


# listener(previous, current)
IdentityListener = Callable[[Identity | None, Identity | None], None]


class SessionProvider:
    def __init__(self, identity: Identity | None = None):
        self._identity = identity
        self._listeners: list[IdentityListener] = []

    def current_identity(self) -> Identity | None:
        return self._identity

    def set_identity(self, identity: Identity | None) -> None:
        """
        Replace the current identity and notify listeners.

        Setting the same identity again is not a transition and notifies
        nobody.
        """
        previous = self._identity
        if previous == identity:
            return
        self._identity = identity
        logger.debug(
            "Identity changed: %s -> %s",
            previous.user_id if previous else None,
            identity.user_id if identity else None,
        )
        for listener in list(self._listeners):
            listener(previous, identity)

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


def identity_from_supabase_user(user: Any) -> Identity | None:
    if user is None:
        return None
    return Identity(user_id=uuid.UUID(str(user.id)), email=getattr(user, "email", None))


def bind_supabase_auth(provider: SessionProvider, client: Client) -> Callable[[], None]:
    """
    Keep `provider` in sync with a Supabase client's auth session.

    Seeds the provider from the current session, then forwards every auth
    state change (sign in, sign out, token refresh). Returns the function
    that stops forwarding.
    """
    session = client.auth.get_session()
    provider.set_identity(identity_from_supabase_user(session.user if session else None))

    def on_auth_change(event, session) -> None:
        logger.info("Supabase auth event: %s", event)
        provider.set_identity(
            identity_from_supabase_user(session.user if session else None)
        )

    subscription = client.auth.on_auth_state_change(on_auth_change)
    return subscription.unsubscribe
