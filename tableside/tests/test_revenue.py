"""
Unit tests for revenue reporting.
"""

from datetime import datetime, timedelta, timezone

from tableside import lifecycle, revenue


def paid(total, method, created_at, order_id=None):
    return lifecycle.OrderSnapshot(
        id=order_id or f'{method}-{total}-{created_at.isoformat()}',
        table_id=1,
        items=(),
        total_price=total,
        status=lifecycle.COMPLETED,
        payment_status=lifecycle.PAID,
        payment_method=method,
        created_at=created_at,
    )


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestSummarize:
    """Tests for revenue.summarize."""

    def test_breakdown_by_method(self):
        orders = [
            paid(100, 'cash', utc(2024, 5, 3, 10)),
            paid(200, 'linepay', utc(2024, 5, 3, 11)),
        ]

        report = revenue.summarize(orders, year=2024, month=5, day=3)

        assert report.total == 300
        assert report.by_method == {'cash': 100, 'linepay': 200}
        assert report.order_count == 2

    def test_missing_method_is_unknown(self):
        report = revenue.summarize([paid(80, None, utc(2024, 5, 3))])
        assert report.by_method == {revenue.UNKNOWN_METHOD: 80}

    def test_unpaid_orders_ignored(self):
        unpaid = lifecycle.OrderSnapshot(
            id='u', table_id=1, items=(), total_price=999,
            created_at=utc(2024, 5, 3),
        )
        report = revenue.summarize([unpaid, paid(50, 'cash', utc(2024, 5, 3))])
        assert report.total == 50
        assert report.grand_total == 50

    def test_total_equals_sum_of_filtered_orders(self):
        orders = [
            paid(100, 'cash', utc(2023, 12, 31)),
            paid(40, 'cash', utc(2024, 1, 2)),
            paid(60, 'jkopay', utc(2024, 1, 15)),
            paid(25, 'cash', utc(2024, 2, 1)),
        ]

        report = revenue.summarize(orders, year=2024, month=1)

        assert report.total == 100
        assert sum(report.by_method.values()) == report.total
        assert report.grand_total == 225

    def test_cascading_options(self):
        """Test each option list only covers orders matching the coarser filters."""
        orders = [
            paid(10, 'cash', utc(2023, 7, 4)),
            paid(10, 'cash', utc(2024, 1, 2)),
            paid(10, 'cash', utc(2024, 1, 20)),
            paid(10, 'cash', utc(2024, 3, 9)),
        ]

        report = revenue.summarize(orders, year=2024, month=1)

        assert report.years == [2024, 2023]
        assert report.months == [1, 3]
        assert report.days == [2, 20]

    def test_no_filters(self):
        orders = [paid(10, 'cash', utc(2023, 7, 4)), paid(15, 'cash', utc(2024, 1, 2))]

        report = revenue.summarize(orders)

        assert report.total == 25
        assert report.months == [1, 7]

    def test_timezone_used_for_options_and_filters(self):
        """Test an order late on Jan 31 UTC is filed under Feb 1 in UTC+8."""
        tz = timezone(timedelta(hours=8))
        orders = [paid(70, 'cash', utc(2024, 1, 31, 20))]

        report = revenue.summarize(orders, year=2024, month=2, day=1, tz=tz)

        assert report.months == [2]
        assert report.days == [1]
        assert report.total == 70

    def test_to_dict(self):
        report = revenue.summarize([paid(10, 'cash', utc(2024, 1, 2))], year=2024)
        data = report.to_dict()
        assert data['total'] == 10
        assert data['filters'] == {'year': 2024, 'month': None, 'day': None}
        assert data['options']['years'] == [2024]
