"""
Contractor roster import (Ontop export format).

The roster has a preamble of free-form lines, then a header row that contains
"Unit of payment". Data rows follow; only hourly contractors are imported.

Columns (0-based):
  1  contractor id
  3  name
  4  email
  12 unit of payment
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from openpyxl import load_workbook
from sqlalchemy.orm import Session

from worktime.core.config import max_import_bytes
from worktime.database import session_scope
from worktime.models.worker import Worker
from worktime.services import worker_service

logger = logging.getLogger(__name__)

HEADER_MARKER = "Unit of payment"
CONTRACTOR_MARKER = "Contractor ID"
HOURLY_UNIT = "per hour"
MIN_COLUMNS = 13

COL_CONTRACTOR_ID = 1
COL_NAME = 3
COL_EMAIL = 4
COL_UNIT_OF_PAYMENT = 12


@dataclass(frozen=True)
class RosterRow:
    contractor_id: Optional[str]
    name: str
    email: str


@dataclass
class ImportResult:
    created: list[Worker] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _rows_to_roster(rows: Iterable[Sequence[Any]]) -> list[RosterRow]:
    header_found = False
    roster = []

    for raw in rows:
        cells = [_cell(v) for v in raw]

        if not header_found:
            if any(HEADER_MARKER in c for c in cells):
                header_found = True
            continue

        if not any(cells):
            continue
        if len(cells) < MIN_COLUMNS:
            continue
        if cells[COL_UNIT_OF_PAYMENT].lower() != HOURLY_UNIT:
            continue

        roster.append(
            RosterRow(
                contractor_id=cells[COL_CONTRACTOR_ID] or None,
                name=cells[COL_NAME] or "Unknown",
                email=cells[COL_EMAIL],
            )
        )

    if not header_found:
        raise ValueError("Invalid CSV format: Header row not found")

    return roster


def parse_roster_csv(text: str) -> list[RosterRow]:
    return _rows_to_roster(csv.reader(io.StringIO(text)))


def parse_roster_xlsx(content: bytes) -> list[RosterRow]:
    try:
        wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        raise ValueError("Could not read XLSX file") from exc

    try:
        return _rows_to_roster(wb.active.iter_rows(values_only=True))
    finally:
        wb.close()


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValueError("Roster file must be UTF-8 encoded") from exc


def validate_roster_file(filename: str, content: bytes) -> str:
    """Returns the file kind ("csv" or "xlsx")."""
    name = (filename or "").lower()
    if name.endswith(".csv"):
        kind = "csv"
    elif name.endswith(".xlsx"):
        kind = "xlsx"
    else:
        raise ValueError("Please upload a CSV or XLSX file")

    limit = max_import_bytes()
    if len(content) > limit:
        raise ValueError(f"File too large. Maximum size is {limit // (1024 * 1024)}MB")

    if kind == "csv":
        text = _decode(content)
        if HEADER_MARKER not in text or CONTRACTOR_MARKER not in text:
            raise ValueError("Invalid Ontop CSV format. Missing required columns.")

    return kind


def parse_roster_file(filename: str, content: bytes) -> list[RosterRow]:
    kind = validate_roster_file(filename, content)
    if kind == "xlsx":
        return parse_roster_xlsx(content)
    return parse_roster_csv(_decode(content))


def import_roster(
    client_id: int,
    filename: str,
    content: bytes,
    *,
    tracking_mode: str = "clock",
    db: Optional[Session] = None,
) -> ImportResult:
    roster = parse_roster_file(filename, content)
    result = ImportResult()

    with session_scope(db) as s:
        seen: set[str] = set()
        for row in roster:
            existing = row.contractor_id and (
                row.contractor_id in seen
                or worker_service.find_worker(client_id, row.contractor_id, db=s) is not None
            )
            if existing:
                result.warnings.append(f"Skipped existing contractor {row.contractor_id} ({row.name})")
                continue

            worker = worker_service.create_worker(
                client_id,
                row.name,
                row.email,
                contractor_id=row.contractor_id,
                tracking_mode=tracking_mode,
                db=s,
            )
            seen.add(worker.contractor_id)
            result.created.append(worker)

    logger.info(
        "Roster imported",
        extra={
            "client_id": int(client_id),
            "file_name": filename,
            "workers_created": len(result.created),
            "skipped": len(result.warnings),
        },
    )
    return result
