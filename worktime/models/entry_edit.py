from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from worktime.database import Base


class EntryEdit(Base):
    __tablename__ = "entry_edits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entry_id = Column(
        String,
        ForeignKey("time_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)
    field = Column(String, nullable=False)
    old_value = Column(String, nullable=True)
    new_value = Column(String, nullable=True)
    reason = Column(String, nullable=True)

    entry = relationship("TimeEntry", back_populates="edit_history")
