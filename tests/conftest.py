"""Shared fixtures for Groupify tests."""

import pytest

from data_models import Bill, Item, Person
from session import SplitSession
from session_store import SessionStore


@pytest.fixture
def people():
    return [
        Person(id="a", name="Alice", color="#ef4444"),
        Person(id="b", name="Bob", color="#3b82f6"),
        Person(id="c", name="Cara", color="#22c55e"),
    ]


@pytest.fixture
def dinner_bill():
    """Two shared dishes and one unassigned drink."""
    return Bill(
        id="bill1",
        name="Warung Sederhana",
        items=[
            Item(id="i1", name="Nasi Goreng", price=60.0, qty=2, shared_by=["a", "b"]),
            Item(id="i2", name="Sate", price=90.0, shared_by=["a", "b", "c"]),
            Item(id="i3", name="Es Teh", price=30.0),
        ],
        subtotal=180.0,
        tax=18.0,
        service_charge=9.0,
        total=207.0,
    )


@pytest.fixture
def store(tmp_path):
    return SessionStore(str(tmp_path / "session.json"))


@pytest.fixture
def session(store):
    return SplitSession(store=store)
