from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from worktime.database import Base

PROOF_TYPES = ("screenshot", "file", "note")


class ProofOfWork(Base):
    __tablename__ = "proof_of_work"

    __table_args__ = (
        CheckConstraint("type IN ('screenshot', 'file', 'note')", name="ck_proof_of_work_type"),
    )

    id = Column(String, primary_key=True, index=True)
    entry_id = Column(
        String,
        ForeignKey("time_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # attachment order within the entry
    position = Column(Integer, nullable=False, default=0)

    type = Column(String, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)
    content = Column(Text, nullable=False)

    file_name = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)
    description = Column(String, nullable=True)

    entry = relationship("TimeEntry", back_populates="proof_of_work")
