"""
Split session for Groupify
Owns the mutable session state and applies user actions to it
"""

from typing import List, Optional

from config import PERSON_COLORS
from data_models import Bill, Item, Payment, Person, SessionState, generate_id
from session_store import SessionStore

DEFAULT_PERSON_NAME = "Me"
NEW_ITEM_NAME = "New item"
DEFAULT_PAYMENT_NOTE = "Paid"

STEPS = [
    'RESTORE', 'UPLOAD', 'BILL_NAME', 'CAMERA', 'PROCESSING', 'ADD_PEOPLE',
    'ASSIGN_ITEMS', 'TAX_SERVICE', 'PAYMENTS', 'SUMMARY',
]


class SplitSession:
    """All mutations of a splitting session; each one is persisted immediately"""

    def __init__(self, state: Optional[SessionState] = None, store: Optional[SessionStore] = None):
        self.state = state or SessionState()
        self.store = store

    @classmethod
    def restore(cls, store: SessionStore) -> "SplitSession":
        """Resume the stored session if it has any bills, otherwise start fresh"""
        saved = store.load()
        if saved is not None and saved.bills:
            return cls(saved, store)
        return cls(SessionState(), store)

    def _save(self):
        if self.store is not None:
            self.store.save(self.state)

    # ---------- lookups ----------

    @property
    def current_bill(self) -> Optional[Bill]:
        return self.find_bill(self.state.current_bill_id)

    def find_bill(self, bill_id: Optional[str]) -> Optional[Bill]:
        for bill in self.state.bills:
            if bill.id == bill_id:
                return bill
        return None

    def find_person(self, person_id: str) -> Optional[Person]:
        for person in self.state.people:
            if person.id == person_id:
                return person
        return None

    def _require_bill(self, bill_id: Optional[str] = None) -> Bill:
        bill = self.find_bill(bill_id or self.state.current_bill_id)
        if bill is None:
            raise ValueError(f"Unknown bill: {bill_id or self.state.current_bill_id!r}")
        return bill

    def _require_item(self, item_id: str, bill_id: Optional[str] = None) -> Item:
        bill = self._require_bill(bill_id)
        for item in bill.items:
            if item.id == item_id:
                return item
        raise ValueError(f"Unknown item: {item_id!r}")

    def _require_payment(self, payment_id: str) -> Payment:
        for payment in self.state.payments:
            if payment.id == payment_id:
                return payment
        raise ValueError(f"Unknown payment: {payment_id!r}")

    # ---------- people ----------

    def add_person(self, name: str) -> Optional[Person]:
        name = name.strip()
        if not name:
            return None
        person = Person(
            id=generate_id(),
            name=name,
            color=PERSON_COLORS[len(self.state.people) % len(PERSON_COLORS)],
        )
        self.state.people.append(person)
        self._save()
        return person

    def remove_person(self, person_id: str):
        """Drop a person and take them off every item they shared"""
        self.state.people = [p for p in self.state.people if p.id != person_id]
        for bill in self.state.bills:
            for item in bill.items:
                item.shared_by = [pid for pid in item.shared_by if pid != person_id]
        self._save()

    # ---------- bills ----------

    def add_bill(self, bill: Bill) -> Bill:
        self.state.bills.append(bill)
        self.state.current_bill_id = bill.id
        if not self.state.people:
            self.state.people.append(
                Person(id=generate_id(), name=DEFAULT_PERSON_NAME, color=PERSON_COLORS[0])
            )
        self._save()
        return bill

    def add_manual_bill(self, name: str = "") -> Bill:
        return self.add_bill(Bill(id=generate_id(), name=name.strip() or "New bill"))

    def select_bill(self, bill_id: str):
        self._require_bill(bill_id)
        self.state.current_bill_id = bill_id
        self._save()

    def rename_bill(self, name: str, bill_id: Optional[str] = None):
        self._require_bill(bill_id).name = name
        self._save()

    def remove_bill(self, bill_id: str):
        self.state.bills = [b for b in self.state.bills if b.id != bill_id]
        if self.state.current_bill_id == bill_id:
            self.state.current_bill_id = self.state.bills[-1].id if self.state.bills else None
        self._save()

    # ---------- items ----------

    def add_item(self, name: str = NEW_ITEM_NAME, price: float = 0.0, qty: int = 1,
                 bill_id: Optional[str] = None) -> Item:
        item = Item(id=generate_id(), name=name, price=price, qty=qty)
        self._require_bill(bill_id).items.append(item)
        self._save()
        return item

    def update_item(self, item_id: str, name: Optional[str] = None, price: Optional[float] = None,
                    qty: Optional[int] = None, bill_id: Optional[str] = None):
        item = self._require_item(item_id, bill_id)
        if name is not None:
            item.name = name
        if price is not None:
            item.price = price
        if qty is not None:
            item.qty = qty
        self._save()

    def remove_item(self, item_id: str, bill_id: Optional[str] = None):
        bill = self._require_bill(bill_id)
        bill.items = [i for i in bill.items if i.id != item_id]
        self._save()

    def toggle_item_share(self, item_id: str, person_id: str, bill_id: Optional[str] = None):
        item = self._require_item(item_id, bill_id)
        if person_id in item.shared_by:
            item.shared_by = [pid for pid in item.shared_by if pid != person_id]
        else:
            item.shared_by = item.shared_by + [person_id]
        self._save()

    def select_all_people_for_item(self, item_id: str, bill_id: Optional[str] = None):
        """Assign an item to everyone, or to nobody if everyone already has it"""
        item = self._require_item(item_id, bill_id)
        all_ids = [p.id for p in self.state.people]
        if len(item.shared_by) == len(all_ids):
            item.shared_by = []
        else:
            item.shared_by = list(all_ids)
        self._save()

    def assign_item(self, item_id: str, person_ids: List[str], bill_id: Optional[str] = None):
        item = self._require_item(item_id, bill_id)
        item.shared_by = list(dict.fromkeys(person_ids))
        self._save()

    # ---------- tax & service ----------

    def apply_tax_service(self, tax_pct: float, service_pct: float, bill_id: Optional[str] = None):
        self._require_bill(bill_id).apply_tax_service(tax_pct, service_pct)
        self._save()

    # ---------- payments ----------

    def total_bill(self) -> float:
        return sum(bill.total for bill in self.state.bills)

    def total_paid(self) -> float:
        return sum(payment.amount for payment in self.state.payments)

    def remaining_amount(self) -> float:
        return self.total_bill() - self.total_paid()

    def add_payment(self, person_id: str, amount: Optional[float] = None,
                    note: str = DEFAULT_PAYMENT_NOTE) -> Payment:
        """Record a payment; without an amount the person covers whatever is still unpaid"""
        if self.find_person(person_id) is None:
            raise ValueError(f"Unknown person: {person_id!r}")
        if amount is None:
            amount = max(0.0, self.remaining_amount())
        payment = Payment(id=generate_id(), person_id=person_id, amount=amount, note=note)
        self.state.payments.append(payment)
        self._save()
        return payment

    def update_payment(self, payment_id: str, amount: Optional[float] = None, note: Optional[str] = None):
        payment = self._require_payment(payment_id)
        if amount is not None:
            payment.amount = amount
        if note is not None:
            payment.note = note
        self._save()

    def remove_payment(self, payment_id: str):
        self.state.payments = [p for p in self.state.payments if p.id != payment_id]
        self._save()

    # ---------- navigation ----------

    def set_step(self, step: str):
        if step not in STEPS:
            raise ValueError(f"Unknown step: {step!r}")
        self.state.step = step
        self._save()

    def reset(self):
        """Forget everything, including what is stored"""
        self.state = SessionState()
        if self.store is not None:
            self.store.clear()
