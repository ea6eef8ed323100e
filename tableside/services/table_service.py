"""
Table Service

Table count, naming, occupancy and QR codes.
"""

import logging
from io import BytesIO
from typing import Dict, List, Optional

import qrcode
from django.db import transaction

from .. import lifecycle
from ..conf import get_setting
from ..exceptions import TableNotFound, ValidationConflict, backend_errors
from ..models import Order, Table

logger = logging.getLogger(__name__)


class TableService:
    """Service for managing dining tables."""

    @staticmethod
    def get_table(table_id: int) -> Table:
        try:
            return Table.objects.get(pk=table_id)
        except Table.DoesNotExist:
            raise TableNotFound()

    @staticmethod
    @backend_errors
    def get_tables() -> List[Table]:
        return list(Table.objects.order_by('id'))

    @staticmethod
    @backend_errors
    def get_table_summaries() -> List[Dict]:
        """Tables with their unpaid orders (oldest first) and the amount due."""
        unpaid: Dict[int, List[Order]] = {}
        for order in Order.objects.filter(payment_status=lifecycle.UNPAID).order_by('created_at'):
            unpaid.setdefault(order.table_id, []).append(order)

        summaries = []
        for table in Table.objects.order_by('id'):
            orders = unpaid.get(table.id, [])
            summaries.append({
                **table.to_row(),
                'unpaid_total': sum(order.total_price for order in orders),
                'orders': [order.to_row() for order in orders],
                'ordering_path': table.ordering_path,
            })
        return summaries

    @staticmethod
    def reconcile_status(table_id: int) -> Optional[Table]:
        """Make the stored status match whether the table has unpaid orders.

        Meant to run inside the transaction that changed the orders.
        """
        table = Table.objects.select_for_update().filter(pk=table_id).first()
        if table is None:
            return None
        derived = table.derived_status
        if table.status != derived:
            logger.info("Table %s status %s -> %s", table_id, table.status, derived)
            table.status = derived
            table.save(update_fields=['status', 'updated_at'])
        return table

    @staticmethod
    @backend_errors
    @transaction.atomic
    def update_table_count(count: int) -> List[Table]:
        """
        Grow or shrink the set of tables to ``count``.

        New tables get the next ids after the current highest one. When
        shrinking, the highest-numbered tables go away together with
        their orders.
        """
        target = max(0, int(count))
        tables = list(Table.objects.order_by('id'))
        current = len(tables)

        if target > current:
            max_id = max((table.id for table in tables), default=0)
            seats = get_setting('default_seats')
            for offset in range(1, target - current + 1):
                table_id = max_id + offset
                Table.objects.create(
                    id=table_id,
                    name=Table.default_name(table_id),
                    seats=seats,
                    status=lifecycle.AVAILABLE,
                )
            logger.info("Added %s tables", target - current)
        elif target < current:
            remove_ids = [table.id for table in tables[target:]]
            # Orders cascade with their table.
            for table in Table.objects.filter(id__in=remove_ids):
                table.delete()
            logger.info("Removed tables %s", remove_ids)

        return list(Table.objects.order_by('id'))

    @staticmethod
    @backend_errors
    def update_table(table_id: int, name: Optional[str] = None, seats: Optional[int] = None) -> Table:
        table = TableService.get_table(table_id)
        update_fields = ['updated_at']
        if name and name.strip():
            table.name = name.strip()
            update_fields.append('name')
        if seats is not None:
            if int(seats) < 1:
                raise ValidationConflict('Seats must be at least 1')
            table.seats = int(seats)
            update_fields.append('seats')
        table.save(update_fields=update_fields)
        table.refresh_from_db()
        return table

    @staticmethod
    def table_url(table_id: int, base_url: Optional[str] = None) -> str:
        base = (base_url or get_setting('base_url')).rstrip('/')
        return f"{base}/table/{table_id}"

    @staticmethod
    def table_qr_png(table_id: int, base_url: Optional[str] = None) -> bytes:
        """PNG QR code whose payload is the table's ordering URL."""
        qr = qrcode.QRCode(version=1, box_size=10, border=4)
        qr.add_data(TableService.table_url(table_id, base_url))
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        buffer = BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()
