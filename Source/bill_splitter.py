"""
Bill Splitter module for Groupify
Allocates item, tax and service costs to people and works out who pays whom
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Dict, Iterable, Sequence

from config import SETTLEMENT_EPSILON, DECIMAL_QUANTIZE
from data_models import Bill, Person, Payment, PersonTotals, SessionState, Settlement


def allocate_bill(bill: Bill, people: Sequence[Person]) -> Dict[str, Dict[str, float]]:
    """Split one bill's items equally per item, then tax/service by item share"""
    person_items = {person.id: 0.0 for person in people}
    assigned_subtotal = 0.0

    for item in bill.items:
        if not item.shared_by:
            continue
        split_price = item.price / len(item.shared_by)
        for person_id in item.shared_by:
            if person_id in person_items:
                person_items[person_id] += split_price
        assigned_subtotal += item.price

    # nothing assigned yet: numerator is zero for everyone, base only has to be non-zero
    base = assigned_subtotal if assigned_subtotal > 0 else (bill.subtotal or 1)

    shares = {}
    for person in people:
        item_total = person_items[person.id]
        proportion = item_total / base
        shares[person.id] = {
            'item_total': item_total,
            'tax_share': bill.tax * proportion,
            'service_share': bill.service_charge * proportion,
        }
    return shares


def allocate(bills: Iterable[Bill], people: Sequence[Person],
             payments: Iterable[Payment] = ()) -> Dict[str, PersonTotals]:
    """Per-person totals across all bills, ordered like ``people``"""
    totals = {
        person.id: PersonTotals(person_id=person.id, name=person.name, color=person.color)
        for person in people
    }

    for bill in bills:
        for person_id, share in allocate_bill(bill, people).items():
            stats = totals[person_id]
            stats.item_total += share['item_total']
            stats.tax_share += share['tax_share']
            stats.service_share += share['service_share']

    paid = {}
    for payment in payments:
        paid[payment.person_id] = paid.get(payment.person_id, 0.0) + payment.amount

    for stats in totals.values():
        stats.final_total = stats.item_total + stats.tax_share + stats.service_share
        stats.amount_paid = paid.get(stats.person_id, 0.0)
        stats.balance = stats.amount_paid - stats.final_total

    return totals


def count_unassigned_items(bills: Iterable[Bill]) -> int:
    """Number of items nobody has been assigned to, across all bills"""
    return sum(len(bill.unassigned_items()) for bill in bills)


def settle(totals: Iterable[PersonTotals]) -> List[Settlement]:
    """Match debtors to creditors in list order until one side runs out"""
    debtors = []
    creditors = []

    for stats in totals:
        if not math.isfinite(stats.balance):
            continue
        balance = Decimal(str(stats.balance))
        if balance < -SETTLEMENT_EPSILON:
            debtors.append({'name': stats.name, 'amount': -balance})
        elif balance > SETTLEMENT_EPSILON:
            creditors.append({'name': stats.name, 'amount': balance})

    settlements = []
    d, c = 0, 0

    while d < len(debtors) and c < len(creditors):
        amount = min(debtors[d]['amount'], creditors[c]['amount'])

        settlements.append(Settlement(
            from_person=debtors[d]['name'],
            to_person=creditors[c]['name'],
            amount=float(amount.quantize(DECIMAL_QUANTIZE, rounding=ROUND_HALF_UP)),
        ))

        debtors[d]['amount'] -= amount
        creditors[c]['amount'] -= amount

        # both sides may clear on the same transfer
        if debtors[d]['amount'] < SETTLEMENT_EPSILON:
            d += 1
        if creditors[c]['amount'] < SETTLEMENT_EPSILON:
            c += 1

    return settlements


class BillSplitter:
    """Read-only view of a session's split; recomputed on every call"""

    def __init__(self, state: SessionState):
        self.state = state

    def person_totals(self) -> List[PersonTotals]:
        return list(allocate(self.state.bills, self.state.people, self.state.payments).values())

    def settlements(self) -> List[Settlement]:
        return settle(self.person_totals())

    def unassigned_count(self) -> int:
        return count_unassigned_items(self.state.bills)

    def total_bill(self) -> float:
        return sum(bill.total for bill in self.state.bills)

    def total_paid(self) -> float:
        return sum(payment.amount for payment in self.state.payments)
