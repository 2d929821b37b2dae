from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship

from worktime.database import Base

ENTRY_STATUSES = ("draft", "submitted", "approved", "rejected")

_OPEN_SESSION = "start_time IS NOT NULL AND end_time IS NULL AND manual_hours IS NULL"


class TimeEntry(Base):
    __tablename__ = "time_entries"

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'submitted', 'approved', 'rejected')",
            name="ck_time_entries_status",
        ),
        CheckConstraint(
            "manual_hours IS NULL OR manual_hours >= 0",
            name="ck_time_entries_manual_hours_nonnegative",
        ),
        ForeignKeyConstraint(
            ["client_id", "worker_id"],
            ["workers.client_id", "workers.contractor_id"],
            ondelete="CASCADE",
        ),
        Index(
            "uq_time_entries_open_session",
            "client_id",
            "worker_id",
            unique=True,
            postgresql_where=text(_OPEN_SESSION),
            sqlite_where=text(_OPEN_SESSION),
        ),
    )

    id = Column(String, primary_key=True, index=True)

    client_id = Column(Integer, nullable=False, index=True)
    worker_id = Column(String, nullable=False, index=True)

    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    manual_hours = Column(Float, nullable=True)

    description = Column(Text, nullable=False, default="")
    status = Column(String, nullable=False, index=True, default="draft")
    client_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_modified = Column(DateTime, nullable=True)

    worker = relationship("Worker", back_populates="entries")
    proof_of_work = relationship(
        "ProofOfWork",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="ProofOfWork.position",
    )
    edit_history = relationship(
        "EntryEdit",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="EntryEdit.id",
    )
