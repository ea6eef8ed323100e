"""
Unit tests for the order lifecycle functions.

These run without a database.
"""

from datetime import datetime, timezone

import pytest

from tableside import lifecycle
from tableside.exceptions import EmptyOrder, InvalidTransition, ItemNotFound, ValidationConflict


def item(item_id='A', price=100, qty=1, completed_qty=0):
    return lifecycle.ItemSnapshot(
        id=item_id, name=f'Item {item_id}', price=price, qty=qty, completed_qty=completed_qty,
    )


def order_of(*items, status=lifecycle.PENDING, table_id=1, order_id='o-1', payment_status=lifecycle.UNPAID):
    return lifecycle.OrderSnapshot(
        id=order_id,
        table_id=table_id,
        items=tuple(items),
        total_price=lifecycle.compute_total(items),
        status=status,
        payment_status=payment_status,
        created_at=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
    )


def status_matches_items(order):
    return (order.status == lifecycle.COMPLETED) == lifecycle.all_completed(order.items)


# ==============================================================================
# SNAPSHOT TESTS
# ==============================================================================

class TestItemSnapshot:
    """Tests for ItemSnapshot."""

    def test_from_dict_defaults_completed_qty(self):
        """Test a stored line without completed_qty reads as zero done."""
        line = lifecycle.ItemSnapshot.from_dict({'id': 'A', 'name': 'Tea', 'price': 50, 'qty': 2})
        assert line.completed_qty == 0
        assert line.is_done is False

    def test_dict_round_trip(self):
        """Test to_dict output reads back to the same snapshot."""
        line = item('A', price=80, qty=3, completed_qty=1)
        assert lifecycle.ItemSnapshot.from_dict(line.to_dict()) == line

    def test_line_total(self):
        assert item(price=120, qty=3).line_total == 360


# ==============================================================================
# SUBMIT CART TESTS
# ==============================================================================

class TestSubmitCart:
    """Tests for submit_cart."""

    def test_new_order_from_cart(self):
        """Test a two-line cart becomes a pending order with the right total."""
        order = lifecycle.submit_cart(3, [item('A', price=100, qty=2), item('B', price=50, qty=1)])

        assert order.total_price == 250
        assert order.status == lifecycle.PENDING
        assert order.payment_status == lifecycle.UNPAID
        assert order.payment_method is None
        assert order.table_id == 3
        assert all(line.completed_qty == 0 for line in order.items)

    def test_completed_counts_are_reset(self):
        order = lifecycle.submit_cart(1, [item('A', qty=2, completed_qty=2)])
        assert order.items[0].completed_qty == 0

    def test_duplicate_lines_are_merged(self):
        """Test the same menu item twice becomes one line."""
        order = lifecycle.submit_cart(1, [item('A', qty=1), item('B', qty=1), item('A', qty=2)])

        assert [line.id for line in order.items] == ['A', 'B']
        assert order.items[0].qty == 3

    def test_empty_cart_rejected(self):
        with pytest.raises(EmptyOrder):
            lifecycle.submit_cart(1, [])

    def test_non_positive_qty_rejected(self):
        with pytest.raises(ValidationConflict):
            lifecycle.submit_cart(1, [item('A', qty=0)])

    def test_advisory_total_used_when_computed_total_is_zero(self):
        order = lifecycle.submit_cart(1, [item('A', price=0, qty=1)], total_price=30)
        assert order.total_price == 30

    def test_explicit_id_and_timestamp(self):
        now = datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)
        order = lifecycle.submit_cart(1, [item()], order_id='fixed', now=now)
        assert order.id == 'fixed'
        assert order.created_at == now

    def test_generated_ids_are_unique(self):
        first = lifecycle.submit_cart(1, [item()])
        second = lifecycle.submit_cart(1, [item()])
        assert first.id != second.id


# ==============================================================================
# MERGE ITEMS TESTS
# ==============================================================================

class TestMergeItems:
    """Tests for merge_items."""

    def test_removing_unfinished_item_completes_order(self):
        """Test dropping the only unfinished line leaves a completed order."""
        order = order_of(item('A', qty=2, completed_qty=2), item('B', qty=1), status=lifecycle.PREPARING)

        result = lifecycle.merge_items(order, [item('A', qty=2)])

        assert result.status == lifecycle.COMPLETED
        assert [line.id for line in result.items] == ['A']
        assert result.items[0].completed_qty == 2

    def test_completed_qty_clamped_when_qty_shrinks(self):
        order = order_of(item('A', qty=5, completed_qty=4), status=lifecycle.PREPARING)

        result = lifecycle.merge_items(order, [item('A', qty=2)])

        assert result.items[0].qty == 2
        assert result.items[0].completed_qty == 2
        assert result.status == lifecycle.COMPLETED

    def test_new_item_reopens_completed_order(self):
        order = order_of(item('A', qty=1, completed_qty=1), status=lifecycle.COMPLETED)

        result = lifecycle.merge_items(order, [item('A', qty=1), item('B', qty=1)])

        assert result.status == lifecycle.PREPARING
        assert result.find_item('B').completed_qty == 0

    def test_pending_order_stays_pending(self):
        """Test edits never change a pending order's status."""
        order = order_of(item('A', qty=1))
        result = lifecycle.merge_items(order, [item('A', qty=3)])
        assert result.status == lifecycle.PENDING

    def test_preparing_order_never_demoted_to_pending(self):
        order = order_of(item('A', qty=2, completed_qty=1), status=lifecycle.PREPARING)
        result = lifecycle.merge_items(order, [item('A', qty=2), item('B', qty=1)])
        assert result.status == lifecycle.PREPARING

    def test_empty_list_returns_deletion(self):
        order = order_of(item('A'), table_id=7, order_id='gone')

        result = lifecycle.merge_items(order, [])

        assert result == lifecycle.Deletion(order_id='gone', table_id=7)

    def test_total_recomputed(self):
        order = order_of(item('A', price=100, qty=1))
        result = lifecycle.merge_items(order, [item('A', price=100, qty=2), item('B', price=40, qty=3)])
        assert result.total_price == 320

    def test_input_order_is_not_mutated(self):
        order = order_of(item('A', qty=1))
        lifecycle.merge_items(order, [item('A', qty=4)])
        assert order.items[0].qty == 1


# ==============================================================================
# ADJUST QTY TESTS
# ==============================================================================

class TestAdjustQty:
    """Tests for adjust_qty."""

    def test_increment(self):
        order = order_of(item('A', price=60, qty=1))
        result = lifecycle.adjust_qty(order, 'A', 2)
        assert result.items[0].qty == 3
        assert result.total_price == 180

    def test_decrement_to_zero_removes_item(self):
        order = order_of(item('A', qty=1), item('B', qty=2))

        result = lifecycle.adjust_qty(order, 'A', -1)

        assert [line.id for line in result.items] == ['B']

    def test_emptying_order_returns_deletion(self):
        """Test the caller gets a Deletion, never an order with no items."""
        order = order_of(item('A', qty=2))

        result = lifecycle.adjust_qty(order, 'A', -5)

        assert isinstance(result, lifecycle.Deletion)
        assert result.order_id == order.id

    def test_unknown_item(self):
        order = order_of(item('A'))
        with pytest.raises(ItemNotFound) as exc_info:
            lifecycle.adjust_qty(order, 'Z', 1)
        assert exc_info.value.item_id == 'Z'

    def test_total_invariant_over_sequence(self):
        """Test total equals the sum of price x qty after every edit."""
        order = order_of(item('A', price=100, qty=2), item('B', price=35, qty=1))
        for item_id, delta in [('A', 1), ('B', 4), ('A', -2), ('B', -1), ('A', 3)]:
            order = lifecycle.adjust_qty(order, item_id, delta)
            assert order.total_price == sum(line.price * line.qty for line in order.items)


# ==============================================================================
# ADD ONE TESTS
# ==============================================================================

class TestAddOne:
    """Tests for add_one."""

    def test_existing_item_incremented(self):
        order = order_of(item('A', qty=1))
        result = lifecycle.add_one(order, item('A', qty=1))
        assert result.items[0].qty == 2

    def test_new_item_appended_with_qty_one(self):
        order = order_of(item('A', qty=1))
        result = lifecycle.add_one(order, item('B', price=70, qty=5))
        assert result.find_item('B').qty == 1
        assert result.total_price == 170


# ==============================================================================
# COMPLETE ONE UNIT TESTS
# ==============================================================================

class TestCompleteOneUnit:
    """Tests for complete_one_unit."""

    def test_three_units(self):
        """Test completing a qty-3 line one unit at a time."""
        order = order_of(item('A', qty=3))
        seen = []
        for _ in range(3):
            order = lifecycle.complete_one_unit(order, 'A')
            seen.append((order.items[0].completed_qty, order.status))

        assert seen == [
            (1, lifecycle.PREPARING),
            (2, lifecycle.PREPARING),
            (3, lifecycle.COMPLETED),
        ]

    def test_idempotent_at_ceiling(self):
        order = order_of(item('A', qty=1, completed_qty=1), status=lifecycle.COMPLETED)

        result = lifecycle.complete_one_unit(order, 'A')

        assert result.items[0].completed_qty == 1
        assert result.status == lifecycle.COMPLETED

    def test_other_items_untouched(self):
        order = order_of(item('A', qty=1), item('B', qty=2))
        result = lifecycle.complete_one_unit(order, 'B')
        assert result.find_item('A').completed_qty == 0
        assert result.find_item('B').completed_qty == 1

    def test_unknown_item(self):
        with pytest.raises(ItemNotFound):
            lifecycle.complete_one_unit(order_of(item('A')), 'missing')


# ==============================================================================
# ADVANCE STATUS TESTS
# ==============================================================================

class TestAdvanceStatus:
    """Tests for advance_status."""

    def test_pending_to_preparing(self):
        result = lifecycle.advance_status(order_of(item('A')), lifecycle.PREPARING)
        assert result.status == lifecycle.PREPARING

    def test_same_status_is_noop(self):
        order = order_of(item('A'), status=lifecycle.PREPARING)
        assert lifecycle.advance_status(order, lifecycle.PREPARING) == order

    @pytest.mark.parametrize('current,target', [
        (lifecycle.PENDING, lifecycle.COMPLETED),
        (lifecycle.PREPARING, lifecycle.PENDING),
        (lifecycle.PREPARING, lifecycle.COMPLETED),
    ])
    def test_disallowed_transitions(self, current, target):
        with pytest.raises(InvalidTransition):
            lifecycle.advance_status(order_of(item('A'), status=current), target)

    def test_finished_items_force_completed(self):
        """Test an order whose items are all done cannot be left in preparing."""
        order = order_of(item('A', qty=1, completed_qty=1))
        result = lifecycle.advance_status(order, lifecycle.PREPARING)
        assert result.status == lifecycle.COMPLETED
        assert status_matches_items(result)


# ==============================================================================
# STATUS INVARIANT TESTS
# ==============================================================================

class TestStatusInvariant:
    """Status is completed exactly when every item is done."""

    def test_after_mixed_sequence(self):
        order = order_of(item('A', qty=2), item('B', qty=1))
        steps = [
            lambda o: lifecycle.advance_status(o, lifecycle.PREPARING),
            lambda o: lifecycle.complete_one_unit(o, 'A'),
            lambda o: lifecycle.complete_one_unit(o, 'B'),
            lambda o: lifecycle.adjust_qty(o, 'A', -1),
            lambda o: lifecycle.adjust_qty(o, 'B', 1),
            lambda o: lifecycle.complete_one_unit(o, 'B'),
            lambda o: lifecycle.merge_items(o, [item('A', qty=1), item('B', qty=2), item('C', qty=1)]),
            lambda o: lifecycle.complete_one_unit(o, 'C'),
        ]
        for step in steps:
            order = step(order)
            assert status_matches_items(order)
        assert order.status == lifecycle.COMPLETED


# ==============================================================================
# CHECKOUT TESTS
# ==============================================================================

class TestCheckoutTable:
    """Tests for checkout_table."""

    def test_two_orders_paid_with_cash(self):
        orders = [
            order_of(item('A'), table_id=5, order_id='o-1'),
            order_of(item('B', price=30), table_id=5, order_id='o-2'),
        ]

        result = lifecycle.checkout_table(5, orders, 'cash')

        assert [o.id for o in result.paid_orders] == ['o-1', 'o-2']
        assert all(o.payment_status == lifecycle.PAID for o in result.paid_orders)
        assert all(o.payment_method == 'cash' for o in result.paid_orders)
        assert result.table_status == lifecycle.AVAILABLE
        assert result.amount == 130

    def test_other_tables_and_paid_orders_ignored(self):
        orders = [
            order_of(item('A'), table_id=5, order_id='mine'),
            order_of(item('A'), table_id=6, order_id='other-table'),
            order_of(item('A'), table_id=5, order_id='already', payment_status=lifecycle.PAID),
        ]
        result = lifecycle.checkout_table(5, orders, 'linepay')
        assert [o.id for o in result.paid_orders] == ['mine']

    def test_no_orders_still_frees_table(self):
        result = lifecycle.checkout_table(5, [], 'cash')
        assert result.paid_orders == ()
        assert result.table_status == lifecycle.AVAILABLE

    def test_payment_method_required(self):
        with pytest.raises(ValidationConflict):
            lifecycle.checkout_table(5, [order_of(item('A'), table_id=5)], '')


# ==============================================================================
# TABLE STATUS TESTS
# ==============================================================================

class TestDeriveTableStatus:

    def test_unpaid_order_occupies_table(self):
        orders = [order_of(item('A'), table_id=2)]
        assert lifecycle.derive_table_status(orders, 2) == lifecycle.OCCUPIED

    def test_only_paid_orders_leave_table_available(self):
        orders = [
            order_of(item('A'), table_id=2, payment_status=lifecycle.PAID),
            order_of(item('A'), table_id=3),
        ]
        assert lifecycle.derive_table_status(orders, 2) == lifecycle.AVAILABLE
