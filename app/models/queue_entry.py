"""
Processing-queue ledger row, one per filename.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from app.database import Base

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"

IN_FLIGHT_STATUSES = (PENDING, PROCESSING)
TERMINAL_STATUSES = (COMPLETED, FAILED)


class ProcessingQueueModel(Base):
    __tablename__ = "processing_queue"

    filename = Column(String, primary_key=True)
    status = Column(String, nullable=False, default=PENDING, index=True)  # pending, processing, completed, failed
    error = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
