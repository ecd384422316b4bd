"""Tests for allocation and settlement."""

import copy

import pytest

from bill_splitter import (
    BillSplitter,
    allocate,
    allocate_bill,
    count_unassigned_items,
    settle,
)
from data_models import Bill, Item, Payment, Person, PersonTotals, SessionState, Settlement


def _totals(*balances):
    return [
        PersonTotals(person_id=name.lower(), name=name, balance=balance)
        for name, balance in balances
    ]


class TestAllocate:
    def test_equal_split_without_tax(self, people):
        bill = Bill(id="b", name="Pizza", items=[Item(id="i", name="Pizza", price=100.0, shared_by=["a", "b"])],
                    subtotal=100.0, total=100.0)
        totals = allocate([bill], people[:2])

        for person_id in ("a", "b"):
            assert totals[person_id].item_total == pytest.approx(50.0)
            assert totals[person_id].final_total == pytest.approx(50.0)
            assert totals[person_id].balance == pytest.approx(-50.0)

    def test_tax_service_and_payment(self, people):
        bill = Bill(id="b", name="Dinner", items=[Item(id="i", name="Set", price=200.0, shared_by=["a", "b"])],
                    subtotal=200.0, tax=20.0, service_charge=10.0, total=230.0)
        payments = [Payment(id="p", person_id="a", amount=230.0, note="Paid")]
        totals = allocate([bill], people[:2], payments)

        alice, bob = totals["a"], totals["b"]
        assert alice.item_total == pytest.approx(100.0)
        assert alice.tax_share == pytest.approx(10.0)
        assert alice.service_share == pytest.approx(5.0)
        assert alice.final_total == pytest.approx(115.0)
        assert alice.amount_paid == pytest.approx(230.0)
        assert alice.balance == pytest.approx(115.0)
        assert bob.final_total == pytest.approx(115.0)
        assert bob.amount_paid == 0.0
        assert bob.balance == pytest.approx(-115.0)

    def test_unassigned_item_excluded_from_base(self, people):
        bill = Bill(
            id="b", name="Lunch",
            items=[
                Item(id="i1", name="Soup", price=90.0),
                Item(id="i2", name="Rice", price=60.0, shared_by=["a"]),
            ],
            subtotal=150.0, tax=15.0, total=165.0,
        )
        totals = allocate([bill], people)

        assert totals["a"].item_total == pytest.approx(60.0)
        assert totals["a"].tax_share == pytest.approx(15.0)
        assert totals["b"].final_total == 0.0
        assert count_unassigned_items([bill]) == 1

    def test_nothing_assigned_gives_zero_shares(self, people):
        bill = Bill(id="b", name="Lunch", items=[Item(id="i", name="Soup", price=90.0)],
                    subtotal=90.0, tax=9.0, service_charge=4.5, total=103.5)
        totals = allocate([bill], people)

        for stats in totals.values():
            assert stats.tax_share == 0.0
            assert stats.service_share == 0.0
            assert stats.final_total == 0.0

    def test_zero_subtotal_and_nothing_assigned(self, people):
        bill = Bill(id="b", name="Empty", tax=5.0)
        totals = allocate([bill], people)
        assert all(stats.final_total == 0.0 for stats in totals.values())

    def test_shares_sum_to_bill_amounts(self, people, dinner_bill):
        totals = allocate([dinner_bill], people)

        assert sum(t.item_total for t in totals.values()) == pytest.approx(dinner_bill.assigned_subtotal())
        assert sum(t.tax_share for t in totals.values()) == pytest.approx(dinner_bill.tax)
        assert sum(t.service_share for t in totals.values()) == pytest.approx(dinner_bill.service_charge)

    def test_final_totals_exclude_unassigned_items(self, people, dinner_bill):
        totals = allocate([dinner_bill], people)
        expected = dinner_bill.assigned_subtotal() + dinner_bill.tax + dinner_bill.service_charge
        assert sum(t.final_total for t in totals.values()) == pytest.approx(expected)
        assert sum(t.final_total for t in totals.values()) < dinner_bill.total

    def test_aggregates_across_bills(self, people, dinner_bill):
        second = Bill(id="b2", name="Dessert", items=[Item(id="d", name="Cake", price=40.0, shared_by=["c"])],
                      subtotal=40.0, tax=4.0, total=44.0)
        totals = allocate([dinner_bill, second], people)
        single = allocate([dinner_bill], people)

        assert totals["c"].item_total == pytest.approx(single["c"].item_total + 40.0)
        assert totals["c"].tax_share == pytest.approx(single["c"].tax_share + 4.0)
        assert totals["a"].final_total == pytest.approx(single["a"].final_total)

    def test_quantity_is_not_used(self, people):
        bill = Bill(id="b", name="Drinks", items=[Item(id="i", name="Beer", price=30.0, qty=3, shared_by=["a"])],
                    subtotal=30.0, total=30.0)
        assert allocate([bill], people)["a"].item_total == pytest.approx(30.0)

    def test_payments_are_session_wide(self, people, dinner_bill):
        payments = [
            Payment(id="p1", person_id="a", amount=50.0),
            Payment(id="p2", person_id="a", amount=25.0),
            Payment(id="p3", person_id="gone", amount=99.0),
        ]
        totals = allocate([dinner_bill], people, payments)
        assert totals["a"].amount_paid == pytest.approx(75.0)
        assert totals["b"].amount_paid == 0.0

    def test_unknown_assignee_still_divides_price(self, people):
        bill = Bill(id="b", name="Dinner", items=[Item(id="i", name="Set", price=100.0, shared_by=["a", "ghost"])],
                    subtotal=100.0, tax=10.0, total=110.0)
        totals = allocate([bill], people)
        assert totals["a"].item_total == pytest.approx(50.0)
        assert totals["a"].tax_share == pytest.approx(5.0)

    def test_result_follows_people_order(self, people, dinner_bill):
        reordered = [people[2], people[0], people[1]]
        assert list(allocate([dinner_bill], reordered)) == ["c", "a", "b"]

    def test_no_people_or_bills(self, people):
        assert allocate([], []) == {}
        totals = allocate([], people)
        assert [t.final_total for t in totals.values()] == [0.0, 0.0, 0.0]

    def test_inputs_not_mutated(self, people, dinner_bill):
        before = copy.deepcopy(dinner_bill)
        allocate([dinner_bill], people, [Payment(id="p", person_id="a", amount=10.0)])
        assert dinner_bill == before

    def test_allocate_bill_breakdown(self, people, dinner_bill):
        shares = allocate_bill(dinner_bill, people)
        assert shares["c"]["item_total"] == pytest.approx(30.0)
        assert shares["c"]["tax_share"] == pytest.approx(18.0 * 30.0 / 150.0)


class TestSettle:
    def test_single_transfer(self):
        result = settle(_totals(("Alice", 115.0), ("Bob", -115.0)))
        assert result == [Settlement(from_person="Bob", to_person="Alice", amount=115.0)]

    def test_all_debtors_gives_no_transfers(self):
        assert settle(_totals(("Alice", -50.0), ("Bob", -50.0))) == []

    def test_two_debtors_one_creditor(self):
        result = settle(_totals(("Alice", -30.0), ("Bob", -20.0), ("Cara", 50.0)))
        assert result == [
            Settlement(from_person="Alice", to_person="Cara", amount=30.0),
            Settlement(from_person="Bob", to_person="Cara", amount=20.0),
        ]

    def test_keeps_list_order_instead_of_largest_first(self):
        result = settle(_totals(("Alice", -10.0), ("Bob", -40.0), ("Cara", 50.0)))
        assert [s.from_person for s in result] == ["Alice", "Bob"]

    def test_both_cursors_advance_together(self):
        result = settle(_totals(("Alice", -30.0), ("Bob", -20.0), ("Cara", 30.0), ("Dan", 20.0)))
        assert result == [
            Settlement(from_person="Alice", to_person="Cara", amount=30.0),
            Settlement(from_person="Bob", to_person="Dan", amount=20.0),
        ]

    def test_near_zero_balances_are_ignored(self):
        assert settle(_totals(("Alice", -0.005), ("Bob", 0.005))) == []

    def test_unbalanced_input_stops_silently(self):
        result = settle(_totals(("Alice", -30.0), ("Cara", 20.0)))
        assert result == [Settlement(from_person="Alice", to_person="Cara", amount=20.0)]

    def test_amounts_rounded_to_cents(self, people):
        bill = Bill(id="b", name="Pizza", items=[Item(id="i", name="Pizza", price=100.0, shared_by=["a", "b", "c"])],
                    subtotal=100.0, total=100.0)
        totals = allocate([bill], people, [Payment(id="p", person_id="a", amount=100.0)])
        result = settle(totals.values())

        assert [(s.from_person, s.to_person, s.amount) for s in result] == [
            ("Bob", "Alice", 33.33),
            ("Cara", "Alice", 33.33),
        ]

    def test_transfers_clear_balances(self, people, dinner_bill):
        payments = [Payment(id="p1", person_id="b", amount=120.0), Payment(id="p2", person_id="c", amount=57.0)]
        totals = list(allocate([dinner_bill], people, payments).values())
        # everyone's balance together is zero: payments equal the assigned share of the bill
        assert sum(t.balance for t in totals) == pytest.approx(0.0)

        remaining = {t.name: t.balance for t in totals}
        sent = {t.name: 0.0 for t in totals}
        for s in settle(totals):
            remaining[s.from_person] += s.amount
            remaining[s.to_person] -= s.amount
            sent[s.from_person] += s.amount

        for t in totals:
            assert abs(remaining[t.name]) <= 0.01
            if t.balance < 0:
                assert sent[t.name] <= abs(t.balance) + 0.01

    def test_empty(self):
        assert settle([]) == []

    def test_non_finite_balances_are_ignored(self):
        result = settle(_totals(("Alice", float("nan")), ("Bob", -5.0), ("Cara", float("inf")), ("Dan", 5.0)))
        assert result == [Settlement(from_person="Bob", to_person="Dan", amount=5.0)]


class TestBillSplitter:
    def test_recomputes_from_state(self, people, dinner_bill):
        state = SessionState(people=list(people), bills=[dinner_bill],
                             payments=[Payment(id="p", person_id="a", amount=177.0)])
        splitter = BillSplitter(state)

        first = (splitter.person_totals(), splitter.settlements())
        second = (splitter.person_totals(), splitter.settlements())
        assert first == second
        assert splitter.unassigned_count() == 1
        assert splitter.total_bill() == pytest.approx(207.0)
        assert splitter.total_paid() == pytest.approx(177.0)

        dinner_bill.items[2].shared_by = ["c"]
        assert splitter.unassigned_count() == 0
        assert splitter.person_totals()[2].item_total == pytest.approx(60.0)
