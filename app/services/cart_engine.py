# app/services/cart_engine.py
import logging
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from app.core.errors import (
    CartError,
    ConcurrentUpdate,
    InvalidQuantity,
    LineNotFound,
    ProductNotFound,
    StaleLineError,
    StoreError,
    SyncFailure,
    Unauthenticated,
)
from app.core.session import Identity, SessionProvider
from app.repositories.base import Catalog, CartStore
from app.schemas.cart import CartLine
from app.services import cart_projection

logger = logging.getLogger(__name__)

CartSnapshot = tuple[CartLine, ...]
EMPTY_SNAPSHOT: CartSnapshot = ()


class EngineState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    MUTATING = "mutating"


@dataclass(frozen=True)
class CartOk:
    snapshot: CartSnapshot

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class CartErr:
    error: CartError

    @property
    def ok(self) -> bool:
        return False


CartResult = CartOk | CartErr


class CartEngine:
    """
    Keeps one user's cart snapshot in step with the cart store.

    Rules:
      - every mutation is written to the store first, then the whole cart
        is re-read; the snapshot never shows unconfirmed writes
      - any failure leaves the snapshot exactly as it was before the call
      - re-adding a product merges into its line; the price captured on
        the first add is kept
      - quantities <= 0 remove the line
      - losing the identity empties the snapshot without touching the store

    Calls are not serialized; use one engine per logical caller.
    """

    def __init__(
        self,
        sessions: SessionProvider,
        store: CartStore,
        catalog: Catalog,
        conditional_merge: bool = True,
        auto_load: bool = True,
    ):
        self.sessions = sessions
        self.store = store
        self.catalog = catalog
        self.conditional_merge = conditional_merge
        self.auto_load = auto_load

        self.snapshot: CartSnapshot = EMPTY_SNAPSHOT
        self.state = EngineState.UNLOADED
        # identity the snapshot was read for
        self._owner: Identity | None = None
        self._unsubscribe = sessions.subscribe(self._on_identity_change)

    # ---- properties / projections ----

    @property
    def identity(self) -> Identity | None:
        return self.sessions.current_identity()

    @property
    def busy(self) -> bool:
        return self.state in (EngineState.LOADING, EngineState.MUTATING)

    def total(self) -> Decimal:
        return cart_projection.cart_total(self.snapshot)

    def item_count(self) -> int:
        return cart_projection.item_count(self.snapshot)

    def find_line(self, line_id: uuid.UUID) -> CartLine | None:
        return next((line for line in self.snapshot if line.id == line_id), None)

    def close(self) -> None:
        """Stop following identity changes."""
        self._unsubscribe()

    # ---- operations ----

    def load(self) -> CartResult:
        """Replace the snapshot with the user's lines from the store."""
        identity = self.identity
        if identity is None:
            self._reset()
            return CartOk(self.snapshot)

        with self._transition(EngineState.LOADING):
            try:
                lines = self.store.list_lines(identity.user_id)
            except StoreError as e:
                return self._failed("load", SyncFailure(), e)
            self._replace(identity, lines)
        return CartOk(self.snapshot)

    def add(self, product_id: uuid.UUID, quantity: int = 1) -> CartResult:
        """
        Add `quantity` units of a product.

        An existing line for the product gets its quantity increased and
        keeps its price; otherwise a new line is created at the product's
        current price.
        """
        if quantity < 1 and self.identity is not None:
            return self._failed("add", InvalidQuantity())

        def write(identity: Identity, current: CartSnapshot) -> None:
            try:
                product = self.catalog.get_product(product_id)
            except StoreError as e:
                raise SyncFailure("Product lookup failed") from e
            if product is None or not product.is_active:
                raise ProductNotFound()

            existing = next(
                (line for line in current if line.product_id == product_id), None
            )
            if existing is not None:
                self.store.update_quantity(
                    identity.user_id,
                    existing.id,
                    existing.quantity + quantity,
                    expected_quantity=(
                        existing.quantity if self.conditional_merge else None
                    ),
                )
                logger.info(
                    "Merged %s x%s into cart line %s", product_id, quantity, existing.id
                )
            else:
                self.store.upsert_line(
                    identity.user_id,
                    product,
                    quantity,
                    conditional=self.conditional_merge,
                )
                logger.info(
                    "Added %s x%s at %s to cart", product_id, quantity, product.price
                )

        return self._mutate("add", write)

    def set_quantity(self, line_id: uuid.UUID, quantity: int) -> CartResult:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            return self.remove(line_id)

        def write(identity: Identity, current: CartSnapshot) -> None:
            if not any(line.id == line_id for line in current):
                raise LineNotFound()
            self.store.update_quantity(identity.user_id, line_id, quantity)

        return self._mutate("set_quantity", write)

    def remove(self, line_id: uuid.UUID) -> CartResult:
        """Delete a line. Removing a missing line still succeeds."""

        def write(identity: Identity, current: CartSnapshot) -> None:
            self.store.delete_line(identity.user_id, line_id)

        return self._mutate("remove", write)

    def clear(self) -> CartResult:
        """Delete every line of the user; the snapshot is emptied without a reload."""
        identity = self.identity
        if identity is None:
            return self._failed("clear", Unauthenticated())

        with self._transition(EngineState.MUTATING):
            try:
                self.store.delete_all_lines(identity.user_id)
            except StoreError as e:
                return self._failed("clear", SyncFailure(), e)
            self._replace(identity, [])
        return CartOk(self.snapshot)

    # ---- internals ----

    def _mutate(
        self,
        operation: str,
        write: Callable[[Identity, CartSnapshot], None],
    ) -> CartResult:
        """
        Run `write` against the store, then re-read the cart.

        `write` sees the current snapshot, or a fresh read if the engine
        has not loaded this user's cart yet. The snapshot is only
        replaced once both the write and the re-read succeeded.
        """
        identity = self.identity
        if identity is None:
            return self._failed(operation, Unauthenticated())

        with self._transition(EngineState.MUTATING):
            try:
                current = self._current_for(identity)
                write(identity, current)
                lines = self.store.list_lines(identity.user_id)
            except StaleLineError as e:
                return self._failed(operation, ConcurrentUpdate(), e)
            except StoreError as e:
                return self._failed(operation, SyncFailure(), e)
            except CartError as e:
                return self._failed(operation, e, e.__cause__)
            self._replace(identity, lines)
        return CartOk(self.snapshot)

    @contextmanager
    def _transition(self, state: EngineState) -> Iterator[None]:
        """Hold `state` for the block, then fall back unless it moved on."""
        previous = self.state
        self.state = state
        try:
            yield
        finally:
            if self.state is state:
                self.state = previous

    def _current_for(self, identity: Identity) -> CartSnapshot:
        if self._owner == identity and self.state is not EngineState.UNLOADED:
            return self.snapshot
        return tuple(self.store.list_lines(identity.user_id))

    def _replace(self, identity: Identity, lines) -> None:
        self.snapshot = tuple(lines)
        self._owner = identity
        self.state = EngineState.LOADED

    def _reset(self) -> None:
        self.snapshot = EMPTY_SNAPSHOT
        self._owner = None
        self.state = EngineState.UNLOADED

    def _failed(
        self,
        operation: str,
        error: CartError,
        cause: BaseException | None = None,
    ) -> CartErr:
        if isinstance(error, SyncFailure):
            logger.error("Cart %s failed: %s (%s)", operation, error.message, cause)
        else:
            logger.warning("Cart %s rejected: %s", operation, error.message)
        return CartErr(error)

    def _on_identity_change(
        self, previous: Identity | None, current: Identity | None
    ) -> None:
        if current != self._owner:
            self._reset()
        if current is None or not self.auto_load:
            return
        result = self.load()
        if isinstance(result, CartErr):
            logger.error(
                "Background cart load for %s failed: %s",
                current.user_id,
                result.error.message,
            )
