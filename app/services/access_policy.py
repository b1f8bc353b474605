"""Access policy: the single decision function for every catalog operation.

Pure functions, no I/O. Rules are evaluated in order and the first match wins:

1. Unauthenticated callers may only read store items.
2. Store items: create/update/delete need manager or admin; any authenticated
   caller may buy (transfer); reads are open.
3. The owner may read, update and delete their own item regardless of role.
4. Another account's item: manager or admin only.

Transfer of an item not held by the store is always denied as NOT_AVAILABLE,
so a buy attempt cannot tell "owned by someone" apart from "does not exist".
"""

from dataclasses import dataclass, field

from app.schemas.ownership import STORE, DenyReason, Operation, OwnerId, Role

_READS = frozenset({Operation.READ_ONE, Operation.READ_MANY})
_OWNER_OPERATIONS = frozenset(
    {Operation.READ_ONE, Operation.READ_MANY, Operation.UPDATE, Operation.DELETE}
)

# Owner filter value meaning "the caller's own items" in listing requests.
OWNER_FILTER_ME = "me"


@dataclass(frozen=True)
class Decision:
    """Allow/deny outcome of a policy evaluation, with a reason when denied."""

    allowed: bool
    reason: DenyReason | None = None
    message: str = ""

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason, message: str) -> "Decision":
        return cls(allowed=False, reason=reason, message=message)


@dataclass(frozen=True)
class ItemFilter:
    """
    Row predicate understood by every item store.

    include_store: match store-held rows.
    owner_ids: match rows owned by any of these accounts.
    all_owners: match every row regardless of owner (overrides the two above).
    in_stock: additionally require stock > 0 (divisible kinds only).
    """

    include_store: bool = True
    owner_ids: tuple[int, ...] = field(default_factory=tuple)
    all_owners: bool = False
    in_stock: bool = False

    def matches(self, owner_id: OwnerId, stock: int | None = None) -> bool:
        if self.in_stock and (stock is None or stock <= 0):
            return False
        if self.all_owners:
            return True
        if owner_id is STORE:
            return self.include_store
        return owner_id in self.owner_ids


STORE_ONLY = ItemFilter()
ANY_OWNER = ItemFilter(all_owners=True)
STORE_IN_STOCK = ItemFilter(in_stock=True)


def only_owner(owner_id: int) -> ItemFilter:
    return ItemFilter(include_store=False, owner_ids=(owner_id,))


@dataclass(frozen=True)
class ListingDecision:
    """Outcome of a listing check: a Decision plus the filter to apply when allowed."""

    decision: Decision
    item_filter: ItemFilter | None = None

    @property
    def allowed(self) -> bool:
        return self.decision.allowed


def decide(
    operation: Operation,
    role: Role,
    authenticated: bool,
    caller_id: int | None,
    resource_owner: OwnerId,
) -> Decision:
    """Decide whether the caller may perform operation on an item owned by resource_owner."""
    if not authenticated:
        if operation in _READS and resource_owner is STORE:
            return Decision.allow()
        return Decision.deny(DenyReason.UNAUTHENTICATED, "Authentication required")

    if resource_owner is STORE:
        if operation is Operation.TRANSFER or operation in _READS:
            return Decision.allow()
        if role.is_staff:
            return Decision.allow()
        return Decision.deny(
            DenyReason.FORBIDDEN, "Manager or admin role required for store items"
        )

    if operation is Operation.TRANSFER:
        return Decision.deny(DenyReason.NOT_AVAILABLE, "Item is not available")

    if resource_owner == caller_id and operation in _OWNER_OPERATIONS:
        return Decision.allow()

    if role.is_staff:
        return Decision.allow()
    return Decision.deny(DenyReason.FORBIDDEN, "Not authorized for this item")


def decide_listing(
    role: Role,
    authenticated: bool,
    caller_id: int | None,
    owner_filter: str | int | None = None,
) -> ListingDecision:
    """
    Decide a listing request and the row filter it maps to.

    owner_filter: None (no filter), "store", "me", or an account id.
    """
    if owner_filter is None:
        if not authenticated:
            return ListingDecision(Decision.allow(), STORE_ONLY)
        if role.is_staff:
            return ListingDecision(Decision.allow(), ANY_OWNER)
        return ListingDecision(
            Decision.allow(), ItemFilter(include_store=True, owner_ids=(caller_id,))
        )

    if owner_filter == "store":
        return ListingDecision(Decision.allow(), STORE_ONLY)

    if owner_filter == OWNER_FILTER_ME:
        if not authenticated:
            return ListingDecision(
                Decision.deny(DenyReason.UNAUTHENTICATED, "Auth required to view owned items")
            )
        return ListingDecision(Decision.allow(), only_owner(caller_id))

    if not authenticated:
        return ListingDecision(
            Decision.deny(DenyReason.UNAUTHENTICATED, "Auth required to view owned items")
        )
    if owner_filter == caller_id or role.is_staff:
        return ListingDecision(Decision.allow(), only_owner(int(owner_filter)))
    return ListingDecision(
        Decision.deny(DenyReason.FORBIDDEN, "Not authorized to view these items")
    )
