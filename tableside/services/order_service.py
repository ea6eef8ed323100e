"""
Order Service

Loads orders, runs them through the lifecycle functions and persists the
result.

Every write is conditional on the version that was read, so two screens
editing the same order cannot silently overwrite each other: the loser
gets ConcurrentUpdate and has to reload. Each call runs in one
transaction that also brings the table's occupancy flag up to date.
"""

import logging
from typing import Dict, Iterable, List, Optional, Union

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .. import lifecycle, realtime, revenue
from ..exceptions import (
    ConcurrentUpdate,
    MenuItemNotFound,
    OrderNotFound,
    ValidationConflict,
    backend_errors,
)
from ..models import MenuItem, Order
from ..signals import order_created, order_deleted, order_status_changed, table_checked_out
from .table_service import TableService

logger = logging.getLogger(__name__)

OrderResult = Union[Order, lifecycle.Deletion]


class OrderService:
    """Service for managing orders."""

    # ---- Loading / persisting ----

    @staticmethod
    def get_order(order_id) -> Order:
        try:
            return Order.objects.get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError):
            raise OrderNotFound()

    @staticmethod
    def _save(order: Order, snapshot: lifecycle.OrderSnapshot) -> Order:
        """Write a snapshot over ``order`` if nobody changed it since it was read."""
        updated = Order.objects.filter(pk=order.pk, version=order.version).update(
            version=F('version') + 1,
            updated_at=timezone.now(),
            **Order.snapshot_fields(snapshot),
        )
        if not updated:
            logger.warning("Order %s changed concurrently (version %s)", order.pk, order.version)
            raise ConcurrentUpdate()

        order.refresh_from_db()
        realtime.publish_rows('orders', realtime.UPDATE, [order.to_row()])
        return order

    @staticmethod
    def _delete(order: Order, deletion: lifecycle.Deletion) -> lifecycle.Deletion:
        deleted, _ = Order.objects.filter(pk=order.pk, version=order.version).delete()
        if not deleted:
            raise ConcurrentUpdate()
        TableService.reconcile_status(deletion.table_id)
        logger.info("Order %s deleted (no items left)", deletion.order_id)
        order_deleted.send(sender=Order, order_id=deletion.order_id, table_id=deletion.table_id)
        return deletion

    @staticmethod
    def _apply(order: Order, result: lifecycle.OrderOrDeletion) -> OrderResult:
        if isinstance(result, lifecycle.Deletion):
            return OrderService._delete(order, result)

        previous_status = order.status
        order = OrderService._save(order, result)
        if order.status != previous_status:
            logger.info("Order %s status %s -> %s", order.pk, previous_status, order.status)
            order_status_changed.send(sender=Order, order=order, previous_status=previous_status)
        return order

    @staticmethod
    def _menu_line(menu_item_id, qty: int) -> lifecycle.ItemSnapshot:
        """Price a line from the current menu."""
        try:
            menu_item = MenuItem.objects.get(pk=menu_item_id)
        except (MenuItem.DoesNotExist, DjangoValidationError):
            raise MenuItemNotFound()
        return menu_item.to_item_snapshot(qty=qty)

    @staticmethod
    def _parse_int(value, message) -> int:
        """Whole number from a JSON value; fractions and non-numbers are rejected."""
        if isinstance(value, bool):
            raise ValidationConflict(message)
        if isinstance(value, float):
            if not value.is_integer():
                raise ValidationConflict(message)
            return int(value)
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationConflict(message)

    @staticmethod
    def _parse_qty(value) -> int:
        return OrderService._parse_int(value, 'Quantity must be a whole number')

    @staticmethod
    def _parse_total(value) -> int:
        total = OrderService._parse_int(value or 0, 'Total must be a whole number')
        if total < 0:
            raise ValidationConflict('Total cannot be negative')
        return total

    @staticmethod
    def _cart_entries(items) -> List[Dict]:
        entries = list(items)
        if not all(isinstance(entry, dict) for entry in entries):
            raise ValidationConflict('Each item must be an object with id and qty')
        return entries

    # ---- Queries ----

    @staticmethod
    @backend_errors
    def get_orders(table_id: Optional[int] = None, payment_status: Optional[str] = None) -> List[Order]:
        """All orders, oldest first, optionally filtered by table and payment status."""
        orders = Order.objects.all()
        if table_id is not None:
            orders = orders.filter(table_id=table_id)
        if payment_status:
            orders = orders.filter(payment_status=payment_status)
        return list(orders.order_by('created_at'))

    @staticmethod
    def get_unpaid_orders(table_id: int) -> List[Order]:
        return OrderService.get_orders(table_id=table_id, payment_status=lifecycle.UNPAID)

    @staticmethod
    @backend_errors
    def get_kitchen_board() -> Dict[str, List[Order]]:
        """Unpaid orders grouped into the kitchen's three columns."""
        board = {status: [] for status in lifecycle.ORDER_STATUSES}
        unpaid = Order.objects.filter(payment_status=lifecycle.UNPAID).order_by('created_at')
        for order in unpaid:
            board.setdefault(order.status, []).append(order)
        return board

    @staticmethod
    @backend_errors
    def get_revenue_report(
        year: Optional[int] = None,
        month: Optional[int] = None,
        day: Optional[int] = None,
    ) -> revenue.RevenueReport:
        paid = Order.objects.filter(payment_status=lifecycle.PAID).order_by('created_at')
        return revenue.summarize(
            (order.to_snapshot() for order in paid),
            year=year, month=month, day=day,
            tz=timezone.get_current_timezone(),
        )

    # ---- Customer ----

    @staticmethod
    @backend_errors
    @transaction.atomic
    def create_order(table_id: int, items: Iterable[Dict], total_price: int = 0) -> Order:
        """
        Submit a cart as a new order.

        Args:
            table_id: Table the cart comes from
            items: Dicts with ``id`` (menu item id) and ``qty``; lines with
                qty <= 0 are ignored. Name and price come from the menu.
            total_price: Total the customer saw; only used as a fallback

        Returns:
            The created Order
        """
        table = TableService.get_table(table_id)

        lines = []
        for entry in OrderService._cart_entries(items):
            qty = OrderService._parse_qty(entry.get('qty'))
            if qty > 0:
                lines.append(OrderService._menu_line(entry.get('id'), qty))

        total_price = OrderService._parse_total(total_price)
        snapshot = lifecycle.submit_cart(table.id, lines, total_price=total_price)
        order = Order.from_snapshot(snapshot)
        order.save(force_insert=True)
        TableService.reconcile_status(table.id)

        logger.info(
            "Order %s created for table %s (%s items, total %s)",
            order.pk, table.id, order.item_count, order.total_price,
        )
        order_created.send(sender=Order, order=order)
        return order

    # ---- Kitchen ----

    @staticmethod
    @backend_errors
    @transaction.atomic
    def update_order_status(order_id, status: str) -> Order:
        if status not in lifecycle.ORDER_STATUSES:
            raise ValidationConflict('Invalid status')
        order = OrderService.get_order(order_id)
        return OrderService._apply(order, lifecycle.advance_status(order.to_snapshot(), status))

    @staticmethod
    @backend_errors
    @transaction.atomic
    def complete_order_item(order_id, item_id: str) -> Order:
        """Mark one unit of an item as done."""
        order = OrderService.get_order(order_id)
        return OrderService._apply(order, lifecycle.complete_one_unit(order.to_snapshot(), item_id))

    # ---- Admin edits ----

    @staticmethod
    @backend_errors
    @transaction.atomic
    def update_order_items(order_id, items: Iterable[Dict]) -> OrderResult:
        """
        Replace an order's items.

        Lines already on the order keep the name and price captured when
        they were ordered; new lines are priced from the menu. Returns a
        Deletion when the new list is empty.
        """
        order = OrderService.get_order(order_id)
        snapshot = order.to_snapshot()

        lines = []
        for entry in OrderService._cart_entries(items):
            qty = OrderService._parse_qty(entry.get('qty'))
            if qty <= 0:
                continue
            existing = snapshot.find_item(str(entry.get('id')))
            if existing is not None:
                lines.append(lifecycle.ItemSnapshot(
                    id=existing.id, name=existing.name, price=existing.price, qty=qty,
                ))
            else:
                lines.append(OrderService._menu_line(entry.get('id'), qty))

        return OrderService._apply(order, lifecycle.merge_items(snapshot, lines))

    @staticmethod
    @backend_errors
    @transaction.atomic
    def adjust_item_qty(order_id, item_id: str, delta: int) -> OrderResult:
        order = OrderService.get_order(order_id)
        delta = OrderService._parse_qty(delta)
        return OrderService._apply(order, lifecycle.adjust_qty(order.to_snapshot(), item_id, delta))

    @staticmethod
    @backend_errors
    @transaction.atomic
    def add_menu_item_to_table(table_id: int, menu_item_id) -> Order:
        """
        Add one unit of a menu item to the table's latest unpaid order,
        opening a new order when the table has none.
        """
        table = TableService.get_table(table_id)
        line = OrderService._menu_line(menu_item_id, qty=1)

        latest = (
            Order.objects.filter(table=table, payment_status=lifecycle.UNPAID)
            .order_by('-created_at')
            .first()
        )
        if latest is None:
            return OrderService.create_order(table.id, [{'id': line.id, 'qty': 1}], total_price=line.price)

        return OrderService._apply(latest, lifecycle.add_one(latest.to_snapshot(), line))

    # ---- Checkout ----

    @staticmethod
    @backend_errors
    @transaction.atomic
    def checkout(table_id: int, payment_method: str) -> lifecycle.CheckoutResult:
        """Mark every unpaid order of a table as paid and free the table."""
        table = TableService.get_table(table_id)
        orders = list(
            Order.objects.select_for_update()
            .filter(table=table, payment_status=lifecycle.UNPAID)
            .order_by('created_at')
        )
        result = lifecycle.checkout_table(
            table.id, [order.to_snapshot() for order in orders], payment_method,
        )

        by_id = {str(order.pk): order for order in orders}
        paid_orders = [OrderService._save(by_id[snap.id], snap) for snap in result.paid_orders]

        table.status = result.table_status
        table.save(update_fields=['status', 'updated_at'])

        logger.info(
            "Table %s checked out with %s (%s orders, %s)",
            table.id, payment_method, len(paid_orders), result.amount,
        )
        table_checked_out.send(
            sender=Order, table=table, orders=paid_orders, payment_method=payment_method,
        )
        return result
