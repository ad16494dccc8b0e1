"""
Status ledger over the ``processing_queue`` table.

A filename is *in flight* while its row is pending or processing; in-flight
files are skipped by every other batch.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.queue_entry import (
    IN_FLIGHT_STATUSES,
    PROCESSING,
    TERMINAL_STATUSES,
    ProcessingQueueModel,
)

logger = logging.getLogger(__name__)


class StatusLedger:
    def __init__(self, db: Session):
        self.db = db

    def in_flight_filenames(self) -> set[str]:
        rows = (
            self.db.query(ProcessingQueueModel.filename)
            .filter(ProcessingQueueModel.status.in_(IN_FLIGHT_STATUSES))
            .all()
        )
        return {r.filename for r in rows}

    def get(self, filename: str) -> Optional[ProcessingQueueModel]:
        return self.db.get(ProcessingQueueModel, filename)

    def list(self, status: Optional[str] = None) -> list[ProcessingQueueModel]:
        query = self.db.query(ProcessingQueueModel)
        if status:
            query = query.filter(ProcessingQueueModel.status == status)
        return query.order_by(ProcessingQueueModel.updated_at.desc()).all()

    def upsert(self, filename: str, status: str, error: Optional[str] = None) -> None:
        row = self.db.get(ProcessingQueueModel, filename)
        if row is None:
            self.db.add(ProcessingQueueModel(filename=filename, status=status, error=error))
        else:
            row.status = status
            row.error = error
            row.updated_at = datetime.utcnow()
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def claim(self, filename: str) -> bool:
        """Mark *filename* as processing unless another run already holds it.

        The row is inserted when absent; an existing row is only taken over
        when its status is terminal. Both paths are single statements, so two
        concurrent batches can never both win the same file.
        """
        if self.db.get(ProcessingQueueModel, filename) is None:
            try:
                self.db.add(ProcessingQueueModel(filename=filename, status=PROCESSING))
                self.db.commit()
                return True
            except IntegrityError:
                self.db.rollback()

        updated = (
            self.db.query(ProcessingQueueModel)
            .filter(
                ProcessingQueueModel.filename == filename,
                ProcessingQueueModel.status.in_(TERMINAL_STATUSES),
            )
            .update(
                {"status": PROCESSING, "error": None, "updated_at": datetime.utcnow()},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated == 1

    def claim_all(self, filenames: Iterable[str]) -> list[str]:
        claimed: list[str] = []
        for name in filenames:
            if self.claim(name):
                claimed.append(name)
            else:
                logger.info("Skipping %s: claimed by another batch", name)
        return claimed
