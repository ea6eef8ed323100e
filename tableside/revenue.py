"""
Revenue reporting over paid orders.

Filters cascade: the month options only include months that have paid
orders in the selected year, and the day options only days inside the
selected month. The same timezone is used to build the options and to
apply the filters, so an order never shows up under a date it cannot
be filtered by.
"""

from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Dict, Iterable, List, Optional

from .lifecycle import PAID, OrderSnapshot

UNKNOWN_METHOD = 'unknown'


@dataclass
class RevenueReport:
    total: int = 0
    by_method: Dict[str, int] = field(default_factory=dict)
    order_count: int = 0
    # Sum over every paid order, ignoring the filters
    grand_total: int = 0
    years: List[int] = field(default_factory=list)
    months: List[int] = field(default_factory=list)
    days: List[int] = field(default_factory=list)
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None

    def to_dict(self):
        return {
            'total': self.total,
            'by_method': dict(self.by_method),
            'order_count': self.order_count,
            'grand_total': self.grand_total,
            'filters': {'year': self.year, 'month': self.month, 'day': self.day},
            'options': {'years': self.years, 'months': self.months, 'days': self.days},
        }


def _local(order: OrderSnapshot, tz: Optional[tzinfo]):
    created = order.created_at
    if tz is not None and created.tzinfo is not None:
        created = created.astimezone(tz)
    return created


def summarize(
    orders: Iterable[OrderSnapshot],
    year: Optional[int] = None,
    month: Optional[int] = None,
    day: Optional[int] = None,
    tz: Optional[tzinfo] = None,
) -> RevenueReport:
    """
    Fold paid orders into a total and a per-payment-method breakdown.

    Args:
        orders: Any orders; unpaid ones and ones without a timestamp are ignored
        year, month, day: Selected filters, None meaning "all"
        tz: Timezone calendar fields are read in

    Returns:
        RevenueReport with the filtered totals and the option lists for
        each filter level.
    """
    paid = [
        (order, _local(order, tz))
        for order in orders
        if order.payment_status == PAID and order.created_at is not None
    ]
    report = RevenueReport(
        grand_total=sum(order.total_price for order, _ in paid),
        year=year, month=month, day=day,
    )

    report.years = sorted({created.year for _, created in paid}, reverse=True)
    if year is not None:
        paid = [(o, c) for o, c in paid if c.year == year]

    report.months = sorted({created.month for _, created in paid})
    if month is not None:
        paid = [(o, c) for o, c in paid if c.month == month]

    report.days = sorted({created.day for _, created in paid})
    if day is not None:
        paid = [(o, c) for o, c in paid if c.day == day]

    for order, _ in paid:
        method = order.payment_method or UNKNOWN_METHOD
        report.by_method[method] = report.by_method.get(method, 0) + order.total_price
        report.total += order.total_price
    report.order_count = len(paid)
    return report
