"""
Bill analysis API endpoints.

POST /api/bills/analyze            — accept a batch trigger, run it in the background
GET  /api/bills/queue              — list ledger entries
GET  /api/bills/queue/{filename}   — get one ledger entry
"""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.ledger import StatusLedger
from app.pipeline import process_batch
from app.schemas import BatchRequest, QueueEntry

logger = logging.getLogger(__name__)
router = APIRouter()

REQUIRED_FIELDS = ("customer", "location_id", "email")


# ── POST /api/bills/analyze ──────────────────────────────────────────────
@router.post("/bills/analyze", status_code=202)
def analyze(req: BatchRequest, background_tasks: BackgroundTasks):
    request = BatchRequest(
        customer=req.customer.strip(),
        location_id=req.location_id.strip(),
        location_address=req.location_address or "",
        email=req.email.strip(),
    )
    for field in REQUIRED_FIELDS:
        if not getattr(request, field):
            raise HTTPException(status_code=400, detail=f"{field} is required")

    logger.info("Analyze: customer=%s site=%s", request.customer, request.location_id)
    background_tasks.add_task(process_batch, request)
    return {"success": True}


# ── GET /api/bills/queue ─────────────────────────────────────────────────
@router.get("/bills/queue", response_model=List[QueueEntry])
def list_queue(status: Optional[str] = None, db: Session = Depends(get_db)):
    rows = StatusLedger(db).list(status)
    logger.info("Found %d queue entries", len(rows))
    return rows


# ── GET /api/bills/queue/{filename} ──────────────────────────────────────
@router.get("/bills/queue/{filename}", response_model=QueueEntry)
def get_queue_entry(filename: str, db: Session = Depends(get_db)):
    row = StatusLedger(db).get(filename)
    if not row:
        raise HTTPException(status_code=404, detail="Queue entry not found")
    return row
