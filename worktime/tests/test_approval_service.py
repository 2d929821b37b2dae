from datetime import date, datetime

import pytest

from worktime.core.errors import EntryNotFound, InvalidTransition
from worktime.database import SessionLocal
from worktime.services import approval_service, time_entry_service


def _entry(worker, hours=2.0, submit=False):
    entry = time_entry_service.submit_manual_entry(
        worker, entry_date=date(2024, 3, 4), hours=hours, description="work"
    )
    if submit:
        entry = time_entry_service.submit_entry(worker, entry.id)
    return entry


def test_approve_from_draft_and_submitted(worker_factory):
    worker = worker_factory(client_id=1)
    draft = _entry(worker)
    submitted = _entry(worker, submit=True)

    assert approval_service.approve_entry(1, draft.id).status == "approved"
    assert approval_service.approve_entry(1, submitted.id).status == "approved"

    with pytest.raises(InvalidTransition):
        approval_service.approve_entry(1, draft.id)


def test_open_session_cannot_be_approved(worker_factory):
    worker = worker_factory(client_id=1)
    entry = time_entry_service.clock_in(worker, datetime(2024, 3, 4, 9, 0))
    with pytest.raises(InvalidTransition):
        approval_service.approve_entry(1, entry.id)


def test_reject_only_submitted(worker_factory):
    worker = worker_factory(client_id=1)
    draft = _entry(worker)
    submitted = _entry(worker, submit=True)

    with pytest.raises(InvalidTransition):
        approval_service.reject_entry(1, draft.id, "no")

    rejected = approval_service.reject_entry(1, submitted.id, "  Missing screenshots  ")
    assert rejected.status == "rejected"
    assert rejected.client_notes == "Missing screenshots"


def test_other_clients_cannot_touch_entries(worker_factory):
    worker = worker_factory(client_id=1)
    entry = _entry(worker, submit=True)
    with pytest.raises(EntryNotFound):
        approval_service.approve_entry(2, entry.id)


def test_pending_entries(worker_factory):
    a = worker_factory(client_id=1)
    b = worker_factory(client_id=1)
    e1 = _entry(a)
    e2 = _entry(b, submit=True)
    approval_service.approve_entry(1, _entry(a).id)

    db = SessionLocal()
    try:
        assert {e.id for e in approval_service.pending_entries(1, db=db)} == {e1.id, e2.id}
        assert [e.id for e in approval_service.pending_entries(1, db=db, worker_id=b.contractor_id)] == [e2.id]
    finally:
        db.close()


def test_bulk_approve_collects_warnings(worker_factory):
    worker = worker_factory(client_id=1)
    e1 = _entry(worker, submit=True)
    e2 = _entry(worker)
    done = _entry(worker)
    approval_service.approve_entry(1, done.id)

    result = approval_service.approve_all(1, [e1.id, e2.id, done.id, "missing"])

    assert result.updated == [e1.id, e2.id]
    assert len(result.warnings) == 2
    assert result.warnings[1].startswith("missing:")


def test_bulk_reject_sets_notes(worker_factory):
    worker = worker_factory(client_id=1)
    e1 = _entry(worker, submit=True)
    e2 = _entry(worker, submit=True)

    result = approval_service.reject_all(1, [e1.id, e2.id], "Please add detail")

    assert result.updated == [e1.id, e2.id]
    assert result.warnings == []

    db = SessionLocal()
    try:
        assert approval_service.pending_entries(1, db=db) == []
    finally:
        db.close()
