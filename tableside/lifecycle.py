"""
Order Lifecycle

Pure transition functions for orders and table occupancy.

Every function takes the current snapshot(s) and returns the next one.
Nothing here touches the database: callers (see services.order_service)
load the rows, run a transition and persist whatever comes back.

Status flow:
    pending --(advance_status / first complete_one_unit)--> preparing
    preparing --(every item completed)--> completed
    completed --(merge_items brings back unfinished work)--> preparing

Item edits never move an order back to pending.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple, Union
import uuid

from .exceptions import EmptyOrder, InvalidTransition, ItemNotFound, ValidationConflict


# Order.status
PENDING = 'pending'
PREPARING = 'preparing'
COMPLETED = 'completed'
ORDER_STATUSES = (PENDING, PREPARING, COMPLETED)

# Order.payment_status
UNPAID = 'unpaid'
PAID = 'paid'
PAYMENT_STATUSES = (UNPAID, PAID)

# Table.status
AVAILABLE = 'available'
OCCUPIED = 'occupied'

# Direct status changes the kitchen may request. Everything else is derived.
ALLOWED_ADVANCES = {
    (PENDING, PREPARING),
}


@dataclass(frozen=True)
class ItemSnapshot:
    """One line of an order: a priced copy of a menu item."""

    id: str
    name: str
    price: int
    qty: int
    completed_qty: int = 0

    @property
    def is_done(self) -> bool:
        return self.completed_qty >= self.qty

    @property
    def line_total(self) -> int:
        return self.price * self.qty

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'qty': self.qty,
            'completed_qty': self.completed_qty,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'ItemSnapshot':
        completed = data.get('completed_qty')
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            price=int(data.get('price') or 0),
            qty=int(data.get('qty') or 0),
            completed_qty=int(completed or 0),
        )


@dataclass(frozen=True)
class OrderSnapshot:
    id: str
    table_id: int
    items: Tuple[ItemSnapshot, ...]
    total_price: int
    status: str = PENDING
    payment_status: str = UNPAID
    payment_method: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_unpaid(self) -> bool:
        return self.payment_status == UNPAID

    def find_item(self, item_id: str) -> Optional[ItemSnapshot]:
        for item in self.items:
            if item.id == str(item_id):
                return item
        return None


@dataclass(frozen=True)
class Deletion:
    """Returned instead of a snapshot when an edit leaves an order empty.

    The caller deletes the order row and re-derives the table's occupancy.
    """

    order_id: str
    table_id: int


@dataclass(frozen=True)
class CheckoutResult:
    table_id: int
    paid_orders: Tuple[OrderSnapshot, ...]
    table_status: str = AVAILABLE

    @property
    def amount(self) -> int:
        return sum(order.total_price for order in self.paid_orders)


OrderOrDeletion = Union[OrderSnapshot, Deletion]


# =============================================================================
# Helpers
# =============================================================================

def compute_total(items: Iterable[ItemSnapshot]) -> int:
    return sum(item.line_total for item in items)


def all_completed(items: Iterable[ItemSnapshot]) -> bool:
    return all(item.is_done for item in items)


def _consolidate(items: Iterable[ItemSnapshot]) -> List[ItemSnapshot]:
    """Collapse repeated menu items into one line, keeping first-seen order.

    Lines whose quantity is not positive are dropped.
    """
    merged: Dict[str, ItemSnapshot] = {}
    for item in items:
        if item.id in merged:
            current = merged[item.id]
            merged[item.id] = replace(current, qty=current.qty + item.qty)
        else:
            merged[item.id] = item
    return [item for item in merged.values() if item.qty > 0]


def derive_table_status(orders: Iterable[OrderSnapshot], table_id: int) -> str:
    """A table is occupied while any of its orders is still unpaid."""
    for order in orders:
        if order.table_id == table_id and order.is_unpaid:
            return OCCUPIED
    return AVAILABLE


# =============================================================================
# Transitions
# =============================================================================

def submit_cart(
    table_id: int,
    cart_items: Iterable[ItemSnapshot],
    total_price: int = 0,
    order_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> OrderSnapshot:
    """
    Build a new order from a submitted cart.

    Args:
        table_id: Table the cart was submitted from
        cart_items: Lines with a positive qty
        total_price: Total shown to the customer; used only when the
            recomputed total comes out as zero
        order_id: Identifier to use; a new UUID when omitted
        now: Creation timestamp; current UTC time when omitted

    Returns:
        A pending, unpaid OrderSnapshot. The caller must also mark the
        table occupied.
    """
    cart_items = list(cart_items)
    if any(item.qty <= 0 for item in cart_items):
        raise ValidationConflict('Cart items must have a positive quantity')

    items = tuple(replace(item, completed_qty=0) for item in _consolidate(cart_items))
    if not items:
        raise EmptyOrder()

    return OrderSnapshot(
        id=order_id or str(uuid.uuid4()),
        table_id=table_id,
        items=items,
        total_price=compute_total(items) or total_price or 0,
        status=PENDING,
        payment_status=UNPAID,
        payment_method=None,
        created_at=now or datetime.now(timezone.utc),
    )


def merge_items(order: OrderSnapshot, new_items: Iterable[ItemSnapshot]) -> OrderOrDeletion:
    """
    Replace an order's item list, keeping finished work where possible.

    An item that was already on the order keeps its completed count,
    clamped to the new quantity. New items start at zero. An empty
    result means the order should be deleted.
    """
    existing = {item.id: item for item in order.items}
    merged = []
    for entry in _consolidate(new_items):
        previous = existing.get(entry.id)
        completed = min(previous.completed_qty, entry.qty) if previous else 0
        merged.append(replace(entry, completed_qty=completed))

    if not merged:
        return Deletion(order_id=order.id, table_id=order.table_id)

    if all_completed(merged):
        next_status = COMPLETED
    elif order.status == COMPLETED:
        next_status = PREPARING
    else:
        next_status = order.status

    return replace(
        order,
        items=tuple(merged),
        total_price=compute_total(merged),
        status=next_status,
    )


def adjust_qty(order: OrderSnapshot, item_id: str, delta: int) -> OrderOrDeletion:
    """Add ``delta`` to one item's quantity; the item goes away at zero."""
    if order.find_item(item_id) is None:
        raise ItemNotFound(item_id)

    items = []
    for item in order.items:
        if item.id == str(item_id):
            item = replace(item, qty=item.qty + delta)
        if item.qty > 0:
            items.append(item)
    return merge_items(order, items)


def add_one(order: OrderSnapshot, item: ItemSnapshot) -> OrderSnapshot:
    """Put one more unit of a menu item on an open order."""
    if order.find_item(item.id) is not None:
        return adjust_qty(order, item.id, 1)
    return merge_items(order, list(order.items) + [replace(item, qty=1, completed_qty=0)])


def complete_one_unit(order: OrderSnapshot, item_id: str) -> OrderSnapshot:
    """Mark one more unit of an item as finished by the kitchen.

    Calling this when the item is already fully done changes nothing
    except making sure the status reflects the items.
    """
    target = order.find_item(item_id)
    if target is None:
        raise ItemNotFound(item_id)

    items = tuple(
        replace(item, completed_qty=min(item.qty, item.completed_qty + 1))
        if item.id == target.id else item
        for item in order.items
    )
    return replace(
        order,
        items=items,
        status=COMPLETED if all_completed(items) else PREPARING,
    )


def advance_status(order: OrderSnapshot, target_status: str) -> OrderSnapshot:
    if target_status == order.status:
        return order
    if (order.status, target_status) not in ALLOWED_ADVANCES:
        raise InvalidTransition(order.status, target_status)
    # An order whose items are all finished can only be completed.
    if all_completed(order.items):
        return replace(order, status=COMPLETED)
    return replace(order, status=target_status)


def checkout_table(
    table_id: int,
    orders: Iterable[OrderSnapshot],
    payment_method: str,
) -> CheckoutResult:
    """Mark every unpaid order of a table as paid and free the table."""
    if not payment_method:
        raise ValidationConflict('A payment method is required')

    paid = tuple(
        replace(order, payment_status=PAID, payment_method=payment_method)
        for order in orders
        if order.table_id == table_id and order.is_unpaid
    )
    return CheckoutResult(table_id=table_id, paid_orders=paid, table_status=AVAILABLE)
