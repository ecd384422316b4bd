"""
Data models for Groupify - Receipt capture and bill splitting
"""

import uuid
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any


def generate_id() -> str:
    """Generate a short unique id for people, bills, items and payments"""
    return uuid.uuid4().hex[:8]


@dataclass
class Person:
    """Someone taking part in the split"""
    id: str
    name: str
    color: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Person":
        return cls(id=data["id"], name=data["name"], color=data.get("color", ""))


@dataclass
class Item:
    """A single line on a bill. ``price`` is the line total, ``qty`` is informational."""
    id: str
    name: str
    price: float = 0.0
    qty: int = 1
    shared_by: List[str] = field(default_factory=list)

    @property
    def is_unassigned(self) -> bool:
        return not self.shared_by

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            price=float(data.get("price", 0) or 0),
            qty=int(data.get("qty", 1) or 1),
            shared_by=list(data.get("shared_by", [])),
        )


@dataclass
class Bill:
    """One receipt's worth of items plus tax, service charge and total"""
    id: str
    name: str
    items: List[Item] = field(default_factory=list)
    subtotal: float = 0.0
    tax: float = 0.0
    service_charge: float = 0.0
    total: float = 0.0

    def items_subtotal(self) -> float:
        """Sum of every item price, assigned or not"""
        return sum(item.price for item in self.items)

    def assigned_subtotal(self) -> float:
        """Sum of prices of items with at least one assignee"""
        return sum(item.price for item in self.items if item.shared_by)

    def unassigned_items(self) -> List[Item]:
        return [item for item in self.items if item.is_unassigned]

    def tax_percentage(self) -> float:
        if self.subtotal > 0:
            return self.tax / self.subtotal * 100
        return 0.0

    def service_percentage(self) -> float:
        if self.subtotal > 0:
            return self.service_charge / self.subtotal * 100
        return 0.0

    def apply_tax_service(self, tax_pct: float, service_pct: float):
        """Resolve tax/service percentages into stored amounts against the item subtotal"""
        self.subtotal = self.items_subtotal()
        self.tax = self.subtotal * tax_pct / 100
        self.service_charge = self.subtotal * service_pct / 100
        self.total = self.subtotal + self.tax + self.service_charge

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bill":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            items=[Item.from_dict(i) for i in data.get("items", [])],
            subtotal=float(data.get("subtotal", 0) or 0),
            tax=float(data.get("tax", 0) or 0),
            service_charge=float(data.get("service_charge", 0) or 0),
            total=float(data.get("total", 0) or 0),
        )


@dataclass
class Payment:
    """Money one person put toward the whole session"""
    id: str
    person_id: str
    amount: float = 0.0
    note: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Payment":
        return cls(
            id=data["id"],
            person_id=data["person_id"],
            amount=float(data.get("amount", 0) or 0),
            note=data.get("note", ""),
        )


@dataclass
class PersonTotals:
    """Derived per-person aggregate across all bills"""
    person_id: str
    name: str
    color: str = ""
    item_total: float = 0.0
    tax_share: float = 0.0
    service_share: float = 0.0
    final_total: float = 0.0
    amount_paid: float = 0.0
    balance: float = 0.0


@dataclass
class Settlement:
    """Represents a payment settlement between people"""
    from_person: str
    to_person: str
    amount: float


@dataclass
class SessionState:
    """Snapshot of everything the user entered in one splitting session"""
    people: List[Person] = field(default_factory=list)
    bills: List[Bill] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)
    step: str = "UPLOAD"
    current_bill_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionState":
        return cls(
            people=[Person.from_dict(p) for p in data.get("people", [])],
            bills=[Bill.from_dict(b) for b in data.get("bills", [])],
            payments=[Payment.from_dict(p) for p in data.get("payments", [])],
            step=data.get("step", "UPLOAD"),
            current_bill_id=data.get("current_bill_id"),
        )


@dataclass
class ExtractedItem:
    name: str
    price: float
    qty: int = 1


@dataclass
class ExtractedReceipt:
    """Structured guess returned by a receipt extraction backend"""
    name: str = ""
    items: List[ExtractedItem] = field(default_factory=list)
    subtotal: float = 0.0
    tax: float = 0.0
    service_charge: float = 0.0
    total: float = 0.0
    currency: str = ""

    def to_bill(self) -> Bill:
        """Build a fresh, unassigned bill from the extraction result"""
        return Bill(
            id=generate_id(),
            name=self.name or "New bill",
            items=[
                Item(id=generate_id(), name=item.name, price=item.price, qty=item.qty or 1)
                for item in self.items
            ],
            subtotal=self.subtotal or 0.0,
            tax=self.tax or 0.0,
            service_charge=self.service_charge or 0.0,
            total=self.total or 0.0,
        )


@dataclass
class ProcessingMetrics:
    """Metrics for parallel processing performance"""
    workers_used: int = 0
    processing_time: float = 0.0
    items_detected: int = 0
    regions_processed: int = 0
