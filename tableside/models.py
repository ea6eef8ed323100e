"""
Tableside Models

Rows the ordering flow reads and writes:
- Categories and menu items shown to customers
- Tables addressed by the QR code on each table
- Orders, with their item lines stored inline as JSON snapshots

Order state changes go through lifecycle.py; the models only convert
between rows and snapshots.
"""

import uuid

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from . import lifecycle
from .conf import get_setting


class TimestampedModel(models.Model):
    created_at = models.DateTimeField(default=timezone.now, verbose_name=_('Created At'))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_('Updated At'))

    class Meta:
        abstract = True


def _iso(value):
    return value.isoformat() if value else None


# =============================================================================
# Menu
# =============================================================================

class Category(TimestampedModel):
    """Menu section. ``order_index`` drives display order."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, verbose_name=_('Name'))
    order_index = models.IntegerField(default=0, verbose_name=_('Display Order'))

    class Meta:
        db_table = 'tableside_category'
        verbose_name = _('Category')
        verbose_name_plural = _('Categories')
        ordering = ['order_index', 'name']

    def __str__(self):
        return self.name

    def to_row(self):
        return {
            'id': str(self.id),
            'name': self.name,
            'order_index': self.order_index,
        }


class MenuItem(TimestampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    category = models.ForeignKey(
        Category, on_delete=models.PROTECT,
        related_name='menu_items', verbose_name=_('Category'),
    )
    name = models.CharField(max_length=255, verbose_name=_('Name'))
    price = models.PositiveIntegerField(default=0, verbose_name=_('Price'))
    # URL or data: URI
    image = models.TextField(blank=True, default='', verbose_name=_('Image'))
    description = models.TextField(blank=True, default='', verbose_name=_('Description'))

    class Meta:
        db_table = 'tableside_menu_item'
        verbose_name = _('Menu Item')
        verbose_name_plural = _('Menu Items')
        ordering = ['created_at']

    def __str__(self):
        return self.name

    def to_row(self):
        return {
            'id': str(self.id),
            'category_id': str(self.category_id),
            'name': self.name,
            'price': self.price,
            'image': self.image,
            'description': self.description,
        }

    def to_item_snapshot(self, qty=1):
        return lifecycle.ItemSnapshot(
            id=str(self.id), name=self.name, price=self.price, qty=qty,
        )


# =============================================================================
# Tables
# =============================================================================

class Table(TimestampedModel):
    """Dining table. The id is what the QR code on the table points at."""

    STATUS_CHOICES = [
        (lifecycle.AVAILABLE, _('Available')),
        (lifecycle.OCCUPIED, _('Occupied')),
    ]

    id = models.PositiveIntegerField(primary_key=True, verbose_name=_('Table Number'))
    name = models.CharField(max_length=100, blank=True, verbose_name=_('Name'))
    seats = models.PositiveIntegerField(
        default=4, validators=[MinValueValidator(1)], verbose_name=_('Seats'),
    )
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES,
        default=lifecycle.AVAILABLE, verbose_name=_('Status'),
    )

    class Meta:
        db_table = 'tableside_table'
        verbose_name = _('Table')
        verbose_name_plural = _('Tables')
        ordering = ['id']

    def __str__(self):
        return self.display_name

    @classmethod
    def default_name(cls, table_id):
        return get_setting('table_name_template').format(id=table_id)

    @property
    def display_name(self):
        return self.name or self.default_name(self.id)

    @property
    def ordering_path(self):
        return f"/table/{self.id}/"

    @property
    def has_unpaid_orders(self):
        return self.orders.filter(payment_status=lifecycle.UNPAID).exists()

    @property
    def derived_status(self):
        unpaid = self.orders.filter(payment_status=lifecycle.UNPAID)
        return lifecycle.derive_table_status((order.to_snapshot() for order in unpaid), self.id)

    def to_row(self):
        return {
            'id': self.id,
            'name': self.display_name,
            'status': self.status,
            'seats': self.seats,
        }


# =============================================================================
# Orders
# =============================================================================

class Order(TimestampedModel):
    """One submitted cart for a table."""

    STATUS_CHOICES = [
        (lifecycle.PENDING, _('Pending')),
        (lifecycle.PREPARING, _('Preparing')),
        (lifecycle.COMPLETED, _('Completed')),
    ]

    PAYMENT_STATUS_CHOICES = [
        (lifecycle.UNPAID, _('Unpaid')),
        (lifecycle.PAID, _('Paid')),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    table = models.ForeignKey(
        Table, on_delete=models.CASCADE,
        related_name='orders', verbose_name=_('Table'),
    )

    # List of ItemSnapshot dicts
    items = models.JSONField(default=list, blank=True, verbose_name=_('Items'))
    total_price = models.PositiveIntegerField(default=0, verbose_name=_('Total'))

    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES,
        default=lifecycle.PENDING, verbose_name=_('Status'),
    )
    payment_status = models.CharField(
        max_length=20, choices=PAYMENT_STATUS_CHOICES,
        default=lifecycle.UNPAID, verbose_name=_('Payment Status'),
    )
    payment_method = models.CharField(
        max_length=30, null=True, blank=True, verbose_name=_('Payment Method'),
    )

    # Bumped on every write; writes are conditional on the version read.
    version = models.PositiveIntegerField(default=0, editable=False)

    class Meta:
        db_table = 'tableside_order'
        verbose_name = _('Order')
        verbose_name_plural = _('Orders')
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['table', 'payment_status'], name='tbs_order_table_pay_idx'),
            models.Index(fields=['payment_status', 'created_at'], name='tbs_order_pay_created_idx'),
        ]

    def __str__(self):
        return f"Order {str(self.id)[:8]} ({self.table_id})"

    # ---- Properties ----

    @property
    def item_count(self):
        return sum(int(item.get('qty') or 0) for item in self.items or [])

    @property
    def is_paid(self):
        return self.payment_status == lifecycle.PAID

    # ---- Snapshots ----

    def to_snapshot(self):
        return lifecycle.OrderSnapshot(
            id=str(self.id),
            table_id=self.table_id,
            items=tuple(lifecycle.ItemSnapshot.from_dict(item) for item in self.items or []),
            total_price=self.total_price,
            status=self.status,
            payment_status=self.payment_status,
            payment_method=self.payment_method,
            created_at=self.created_at,
        )

    @staticmethod
    def snapshot_fields(snapshot):
        """Column values for a snapshot (everything except id and created_at)."""
        return {
            'table_id': snapshot.table_id,
            'items': [item.to_dict() for item in snapshot.items],
            'total_price': snapshot.total_price,
            'status': snapshot.status,
            'payment_status': snapshot.payment_status,
            'payment_method': snapshot.payment_method,
        }

    @classmethod
    def from_snapshot(cls, snapshot):
        return cls(
            id=uuid.UUID(snapshot.id),
            created_at=snapshot.created_at,
            **cls.snapshot_fields(snapshot),
        )

    def to_row(self):
        return {
            'id': str(self.id),
            'table_id': self.table_id,
            'items': list(self.items or []),
            'total_price': self.total_price,
            'status': self.status,
            'payment_status': self.payment_status,
            'payment_method': self.payment_method,
            'created_at': _iso(self.created_at),
        }
