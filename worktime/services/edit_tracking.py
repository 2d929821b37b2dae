from datetime import date, datetime, time
from typing import Any, Mapping, Optional

from worktime.core.config import edit_window_days
from worktime.models.entry_edit import EntryEdit
from worktime.models.time_entry import TimeEntry

EDITABLE_STATUSES = frozenset({"draft", "submitted"})
TRACKED_FIELDS = ("date", "start_time", "end_time", "manual_hours", "description")

REASON_APPROVED = "Cannot edit approved entries"
REASON_REJECTED = "Cannot edit rejected entries. Please create a new entry."
RESUBMIT_REASON = "Entry modified after submission"


def can_edit(entry: TimeEntry) -> bool:
    return entry.status in EDITABLE_STATUSES


def validate_edit_permissions(
    entry: TimeEntry,
    today: Optional[date] = None,
    window_days: Optional[int] = None,
) -> tuple[bool, Optional[str]]:
    if not can_edit(entry):
        return False, REASON_APPROVED if entry.status == "approved" else REASON_REJECTED

    window = edit_window_days() if window_days is None else int(window_days)
    today = today or date.today()
    if (today - entry.date).days > window:
        return False, f"Cannot edit entries older than {window} days"

    return True, None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    return str(value)


def track_edit(
    entry: TimeEntry,
    field: str,
    old_value: Any,
    new_value: Any,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> EntryEdit:
    now = now or datetime.utcnow()
    record = EntryEdit(
        timestamp=now,
        field=field,
        old_value=_as_text(old_value),
        new_value=_as_text(new_value),
        reason=reason,
    )
    entry.edit_history.append(record)
    entry.last_modified = now

    if entry.status == "submitted":
        entry.status = "draft"
        track_edit(entry, "status", "submitted", "draft", RESUBMIT_REASON, now)

    return record


def compare_entries(original: Mapping[str, Any], modified: Mapping[str, Any]) -> list[dict[str, Any]]:
    changes = []
    for field in TRACKED_FIELDS:
        old_value = original.get(field)
        new_value = modified.get(field)
        if old_value != new_value:
            changes.append({"field": field, "old_value": old_value, "new_value": new_value})
    return changes


def has_been_edited(entry: TimeEntry) -> bool:
    return len(entry.edit_history) > 0


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'' if n == 1 else 's'}"


def time_since(then: datetime, now: Optional[datetime] = None) -> str:
    seconds = ((now or datetime.utcnow()) - then).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 60:
        return _plural(minutes, "minute")
    if hours < 24:
        return _plural(hours, "hour")
    return _plural(days, "day")


def edit_summary(entry: TimeEntry, now: Optional[datetime] = None) -> str:
    history = entry.edit_history
    if not history:
        return "No edits made"

    last = history[-1]
    return f"Last edited {time_since(last.timestamp, now)} ago ({len(history)} total edits)"
