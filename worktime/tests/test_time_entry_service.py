from datetime import date, datetime, time, timedelta
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from worktime.core.errors import EditNotAllowed, EntryNotFound, InvalidTransition, ProofNotFound
from worktime.database import SessionLocal
from worktime.models.time_entry import TimeEntry
from worktime.services import time_entry_service as entries
from worktime.services import worker_service
from worktime.services.time_entry_service import ProofInput

NOTE = ProofInput(type="note", content="Fixed the login bug")


def _reload(entry_id: str) -> TimeEntry:
    db = SessionLocal()
    try:
        row = db.get(TimeEntry, entry_id)
        assert row is not None
        # touch relationships while the session is open
        list(row.proof_of_work)
        list(row.edit_history)
        return row
    finally:
        db.close()


def _count_open(worker_id: str) -> int:
    db = SessionLocal()
    try:
        return (
            db.query(TimeEntry)
            .filter(
                TimeEntry.worker_id == worker_id,
                TimeEntry.start_time.isnot(None),
                TimeEntry.end_time.is_(None),
            )
            .count()
        )
    finally:
        db.close()


# ---------- clock sessions ----------

def test_clock_session_round(worker_factory):
    worker = worker_factory()

    started = entries.clock_in(worker, datetime(2024, 3, 4, 9, 0, 30))
    assert started.status == "draft"
    assert started.date == date(2024, 3, 4)
    assert started.start_time == time(9, 0, 30)
    assert _count_open(worker.contractor_id) == 1

    finished = entries.clock_out(worker, datetime(2024, 3, 4, 17, 30, 30), "Backend work")
    assert finished.id == started.id
    assert finished.end_time == time(17, 30, 30)
    assert finished.description == "Backend work"
    assert _count_open(worker.contractor_id) == 0


def test_clock_in_twice_is_rejected(worker_factory):
    worker = worker_factory()
    entries.clock_in(worker, datetime(2024, 3, 4, 9, 0))

    with pytest.raises(ValueError, match="Active clock session already exists"):
        entries.clock_in(worker, datetime(2024, 3, 4, 10, 0))
    assert _count_open(worker.contractor_id) == 1


def test_clock_out_without_session(worker_factory):
    worker = worker_factory()
    with pytest.raises(ValueError, match="No active clock session"):
        entries.clock_out(worker, datetime(2024, 3, 4, 17, 0))


def test_open_session_index_blocks_concurrent_clock_ins(worker_factory):
    worker = worker_factory()

    def _row():
        return TimeEntry(
            id=str(uuid4()),
            client_id=worker.client_id,
            worker_id=worker.contractor_id,
            date=date(2024, 3, 4),
            start_time=time(9, 0),
            description="",
            status="draft",
            created_at=datetime.utcnow(),
        )

    db1 = SessionLocal()
    db2 = SessionLocal()
    try:
        db1.add(_row())
        db2.add(_row())

        db1.commit()

        with pytest.raises(IntegrityError):
            db2.commit()
    finally:
        db1.rollback()
        db2.rollback()
        db1.close()
        db2.close()


def test_session_over_midnight_keeps_its_start_day(worker_factory):
    worker = worker_factory()
    entries.clock_in(worker, datetime(2024, 3, 4, 22, 0))
    finished = entries.clock_out(worker, datetime(2024, 3, 5, 2, 0))

    assert finished.date == date(2024, 3, 4)
    assert finished.end_time == time(2, 0)


# ---------- manual entries ----------

def test_manual_entry_validation(worker_factory):
    worker = worker_factory()

    with pytest.raises(ValueError, match="Hours must be between"):
        entries.submit_manual_entry(worker, entry_date=date(2024, 3, 4), hours=0.1, description="x")
    with pytest.raises(ValueError, match="Hours must be between"):
        entries.submit_manual_entry(worker, entry_date=date(2024, 3, 4), hours=13, description="x")
    with pytest.raises(ValueError, match="Description is required"):
        entries.submit_manual_entry(worker, entry_date=date(2024, 3, 4), hours=2, description="  ")


def test_timesheet_mode_requires_proof(worker_factory):
    worker = worker_factory(tracking_mode="timesheet")

    with pytest.raises(ValueError, match="proof of work"):
        entries.submit_manual_entry(worker, entry_date=date(2024, 3, 4), hours=2, description="Docs")

    entry = entries.submit_manual_entry(
        worker, entry_date=date(2024, 3, 4), hours=2, description="Docs", proofs=[NOTE]
    )
    stored = _reload(entry.id)
    assert stored.manual_hours == 2
    assert [p.content for p in stored.proof_of_work] == [NOTE.content]
    assert stored.proof_of_work[0].file_size == len(NOTE.content)


def test_oversized_proof_is_rejected(worker_factory, monkeypatch):
    monkeypatch.setenv("MAX_PROOF_BYTES", "8")
    worker = worker_factory()
    with pytest.raises(ValueError, match="Proof too large"):
        entries.submit_manual_entry(
            worker, entry_date=date(2024, 3, 4), hours=2, description="x", proofs=[NOTE]
        )


# ---------- submit / edit ----------

def _manual(worker, day=None, hours=3.0):
    return entries.submit_manual_entry(
        worker, entry_date=day or date.today(), hours=hours, description="Initial"
    )


def test_submit_only_from_draft(worker_factory):
    worker = worker_factory()
    entry = _manual(worker)

    submitted = entries.submit_entry(worker, entry.id)
    assert submitted.status == "submitted"

    with pytest.raises(InvalidTransition):
        entries.submit_entry(worker, entry.id)


def test_open_session_cannot_be_submitted(worker_factory):
    worker = worker_factory()
    entry = entries.clock_in(worker, datetime(2024, 3, 4, 9, 0))
    with pytest.raises(InvalidTransition):
        entries.submit_entry(worker, entry.id)


def test_edit_after_submission_returns_to_draft(worker_factory):
    worker = worker_factory()
    entry = _manual(worker)
    entries.submit_entry(worker, entry.id)

    edited = entries.edit_entry(worker, entry.id, {"manual_hours": 5, "description": "Updated"}, "typo")
    assert edited.status == "draft"

    stored = _reload(entry.id)
    fields = [(e.field, e.old_value, e.new_value) for e in stored.edit_history]
    assert ("manual_hours", "3.0", "5.0") in fields
    assert ("description", "Initial", "Updated") in fields
    assert ("status", "submitted", "draft") in fields
    assert stored.last_modified is not None


def test_edit_without_changes_records_nothing(worker_factory):
    worker = worker_factory()
    entry = _manual(worker)
    entries.edit_entry(worker, entry.id, {"description": "Initial"})
    assert _reload(entry.id).edit_history == []


def test_edit_rejects_unknown_fields(worker_factory):
    worker = worker_factory()
    entry = _manual(worker)
    with pytest.raises(ValueError, match="cannot be edited"):
        entries.edit_entry(worker, entry.id, {"status": "approved"})


def test_edit_outside_window_is_refused(worker_factory):
    worker = worker_factory()
    entry = _manual(worker, day=date(2024, 1, 1))
    with pytest.raises(EditNotAllowed, match="older than 30 days"):
        entries.edit_entry(worker, entry.id, {"description": "late"}, today=date(2024, 3, 1))


def test_other_workers_entries_are_not_found(worker_factory):
    owner = worker_factory()
    intruder = worker_factory()
    entry = _manual(owner)
    with pytest.raises(EntryNotFound):
        entries.edit_entry(intruder, entry.id, {"description": "mine now"})


def test_adjustment_auto_submits(worker_factory):
    worker = worker_factory()
    today = date.today()
    entries.clock_in(worker, datetime.combine(today, time(9, 0)))
    entry = entries.clock_out(worker, datetime.combine(today, time(12, 0)))

    adjusted = entries.request_adjustment(
        worker, entry.id, start_time=time(8, 30), end_time=time(12, 0), reason="Forgot to clock in"
    )
    assert adjusted.status == "submitted"
    assert adjusted.start_time == time(8, 30)

    stored = _reload(entry.id)
    assert [e.field for e in stored.edit_history] == ["start_time"]
    assert stored.edit_history[0].reason == "Forgot to clock in"


def test_adjustment_needs_reason_and_clock_entry(worker_factory):
    worker = worker_factory()
    manual = _manual(worker)
    with pytest.raises(ValueError, match="reason"):
        entries.request_adjustment(worker, manual.id, start_time=time(8), end_time=time(9), reason=" ")
    with pytest.raises(ValueError, match="Only clock entries"):
        entries.request_adjustment(worker, manual.id, start_time=time(8), end_time=time(9), reason="x")


def test_edit_keeps_manual_entry_rules(worker_factory):
    worker = worker_factory()
    entry = _manual(worker)

    with pytest.raises(ValueError, match="Description is required"):
        entries.edit_entry(worker, entry.id, {"description": "  "})
    with pytest.raises(ValueError, match="Hours must be between"):
        entries.edit_entry(worker, entry.id, {"manual_hours": 99.0})
    with pytest.raises(ValueError, match="Hours must be between"):
        entries.edit_entry(worker, entry.id, {"manual_hours": 0.1})

    stored = _reload(entry.id)
    assert stored.description == "Initial"
    assert stored.manual_hours == 3.0
    assert stored.edit_history == []


def test_clock_entry_description_can_stay_blank(worker_factory):
    worker = worker_factory()
    today = date.today()
    entries.clock_in(worker, datetime.combine(today, time(9, 0)))
    entry = entries.clock_out(worker, datetime.combine(today, time(12, 0)), "Shift")

    edited = entries.edit_entry(worker, entry.id, {"description": ""})
    assert edited.description == ""


def test_entries_of_same_contractor_id_stay_with_their_client():
    db = SessionLocal()
    try:
        ours = worker_service.create_worker(1, "Ana", contractor_id="SHARED", db=db)
        theirs = worker_service.create_worker(2, "Ben", contractor_id="SHARED", db=db)
        db.commit()
    finally:
        db.close()

    entry = _manual(ours)
    their_session = entries.clock_in(theirs, datetime(2024, 3, 4, 9, 0))
    entries.clock_in(ours, datetime(2024, 3, 4, 9, 0))

    with pytest.raises(EntryNotFound):
        entries.edit_entry(theirs, entry.id, {"description": "not mine"})

    db = SessionLocal()
    try:
        assert [e.id for e in entries.list_worker_entries(theirs, db=db)] == [their_session.id]
    finally:
        db.close()


# ---------- proofs ----------

def test_add_and_remove_proofs(worker_factory):
    worker = worker_factory()
    entry = _manual(worker)

    first = entries.add_proof(worker, entry.id, NOTE)
    second = entries.add_proof(worker, entry.id, ProofInput(type="file", content="data:...", file_name="a.pdf"))
    assert [p.id for p in _reload(entry.id).proof_of_work] == [first.id, second.id]

    entries.remove_proof(worker, first.id)
    assert [p.id for p in _reload(entry.id).proof_of_work] == [second.id]

    with pytest.raises(ProofNotFound):
        entries.remove_proof(worker, first.id)


def test_invalid_proof_type(worker_factory):
    worker = worker_factory()
    entry = _manual(worker)
    with pytest.raises(ValueError, match="Invalid proof type"):
        entries.add_proof(worker, entry.id, ProofInput(type="video", content="x"))


# ---------- queries ----------

def test_today_summary(worker_factory):
    worker = worker_factory()
    today = date(2024, 3, 4)
    entries.submit_manual_entry(worker, entry_date=today, hours=2, description="a", proofs=[NOTE])
    entries.submit_manual_entry(worker, entry_date=today - timedelta(days=1), hours=5, description="b")
    entries.clock_in(worker, datetime.combine(today, time(14, 0)))

    db = SessionLocal()
    try:
        summary = entries.today_summary(worker, today, db=db)
        assert summary["total_hours"] == 2
        assert summary["clocked_in"] is True
        assert len(summary["entries"]) == 2
        assert len(summary["proof_of_work"]) == 1
    finally:
        db.close()


def test_timesheet_entry_keeps_its_last_proof(worker_factory):
    worker = worker_factory(tracking_mode="timesheet")
    entry = entries.submit_manual_entry(
        worker, entry_date=date.today(), hours=2, description="Docs", proofs=[NOTE]
    )
    only = _reload(entry.id).proof_of_work[0]

    with pytest.raises(ValueError, match="at least one proof of work"):
        entries.remove_proof(worker, only.id)
    assert len(_reload(entry.id).proof_of_work) == 1

    extra = entries.add_proof(worker, entry.id, ProofInput(type="note", content="Reviewed the PR"))
    entries.remove_proof(worker, only.id)
    assert [p.id for p in _reload(entry.id).proof_of_work] == [extra.id]
