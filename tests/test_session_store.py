"""Tests for the JSON session store."""

from data_models import Bill, Item, Payment, Person, SessionState
from session_store import SessionStore


def test_load_missing_file_returns_none(tmp_path):
    assert SessionStore(str(tmp_path / "none.json")).load() is None


def test_save_and_load_full_snapshot(store):
    state = SessionState(
        people=[Person(id="a", name="Alice", color="#ef4444")],
        bills=[Bill(id="b", name="Dinner", items=[Item(id="i", name="Soup", price=12.5, qty=2, shared_by=["a"])],
                    subtotal=12.5, tax=1.25, service_charge=0.5, total=14.25)],
        payments=[Payment(id="p", person_id="a", amount=14.25, note="Cash")],
        step="SUMMARY",
        current_bill_id="b",
    )
    store.save(state)
    assert store.load() == state


def test_save_replaces_previous_snapshot(store):
    store.save(SessionState(people=[Person(id="a", name="Alice")]))
    store.save(SessionState(people=[Person(id="b", name="Bob")]))
    assert [p.name for p in store.load().people] == ["Bob"]


def test_corrupt_file_returns_none(store):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text("{not json", encoding="utf-8")
    assert store.load() is None


def test_save_creates_parent_directory(tmp_path):
    store = SessionStore(str(tmp_path / "nested" / "dir" / "state.json"))
    store.save(SessionState())
    assert store.path.exists()


def test_clear(store):
    store.save(SessionState())
    store.clear()
    assert not store.path.exists()
    store.clear()
