# app/services/supabase_cart.py
from collections.abc import Iterator
from contextlib import contextmanager

from supabase import Client

from app.core.config import get_settings
from app.core.session import SessionProvider, bind_supabase_auth
from app.core.supabase_client import supabase_public
from app.repositories.supabase_repo import (
    SupabaseCartRepository,
    SupabaseProductRepository,
)
from app.services.cart_engine import CartEngine


@contextmanager
def supabase_cart(client: Client | None = None) -> Iterator[CartEngine]:
    """
    Cart engine for a long-lived client session talking to Supabase directly.

    This is the public entry point for clients that bypass the HTTP API
    (scripts, workers, notebooks); the FastAPI app in app/main.py uses the
    SQL repositories instead.

    The engine follows the client's auth state: it loads the cart when a
    user signs in and empties it on sign out. Leaving the block detaches
    it again.

    Usage:

        with supabase_cart() as cart:
            cart.add(product_id)
            print(cart.total())
    """
    client = client or supabase_public()
    sessions = SessionProvider()
    engine = CartEngine(
        sessions,
        SupabaseCartRepository(client),
        SupabaseProductRepository(client),
        conditional_merge=get_settings().CART_CONDITIONAL_MERGE,
    )
    unbind = bind_supabase_auth(sessions, client)
    try:
        yield engine
    finally:
        unbind()
        engine.close()
