"""
Tableside Signals

Domain events sent by the services after a change is persisted.
Row-level change events live in realtime.py.
"""

from django.dispatch import Signal

# Signals this module emits
order_created = Signal()  # Provides: order
order_status_changed = Signal()  # Provides: order, previous_status
order_deleted = Signal()  # Provides: order_id, table_id
table_checked_out = Signal()  # Provides: table, orders, payment_method
