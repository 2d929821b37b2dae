from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from worktime.database import Base

TRACKING_MODES = ("clock", "timesheet")


class Worker(Base):
    __tablename__ = "workers"

    __table_args__ = (
        CheckConstraint("tracking_mode IN ('clock', 'timesheet')", name="ck_workers_tracking_mode"),
    )

    # contractor ids are unique per client only
    client_id = Column(Integer, primary_key=True, autoincrement=False, index=True)
    contractor_id = Column(String, primary_key=True, index=True)

    name = Column(String, nullable=False)
    email = Column(String, nullable=False, default="")

    invite_token = Column(String, nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=False)
    joined_at = Column(DateTime, nullable=True)

    tracking_mode = Column(String, nullable=False, default="clock")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    entries = relationship(
        "TimeEntry",
        back_populates="worker",
        cascade="all, delete-orphan",
    )
