"""
Pydantic v2 models shared by every stage of the bill pipeline.
"""
from __future__ import annotations

import os
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Documents & jobs
# ---------------------------------------------------------------------------

class BillDocument(BaseModel):
    """A bill file as found in the document store."""
    model_config = ConfigDict(frozen=True)

    filename: str
    content: bytes = b""
    extension: str = ""

    @classmethod
    def from_bytes(cls, filename: str, content: bytes) -> "BillDocument":
        return cls(
            filename=filename,
            content=content,
            extension=os.path.splitext(filename)[1].lower(),
        )


class ExtractionJob(BaseModel):
    filename: str
    job_handle: str


class ProcessingLogEntry(BaseModel):
    """One row of the per-stage processing log."""
    filename: str
    stage: str = Field(..., description="validation | submission | retrieval")
    status: str = Field(..., description="submitted | retrieved | failed")
    error: str = ""


# ---------------------------------------------------------------------------
# Extraction output
# ---------------------------------------------------------------------------

class MeterReading(BaseModel):
    """One element of the model's ``results`` list."""
    model_config = ConfigDict(extra="ignore")

    meter_number: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    total_kwh: Optional[float] = None
    total_charges: Optional[float] = None
    adjustments: Optional[float] = None

    @field_validator("meter_number", "start_date", "end_date", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> Any:
        if v is None:
            return None
        if isinstance(v, str):
            return v.strip() or None
        # meter ids sometimes come back as 1124520.0
        if isinstance(v, float) and v.is_integer():
            return str(int(v))
        return str(v)

    @field_validator("total_kwh", "total_charges", "adjustments", mode="before")
    @classmethod
    def _as_number(cls, v: Any) -> Any:
        # "$2,271.93" and "" both show up in model output
        if isinstance(v, str):
            v = v.replace("$", "").replace(",", "").strip()
            return v or None
        return v


class BillingRecord(MeterReading):
    filename: str
    sequence_index: int
    error: Optional[str] = None
    warning: Optional[str] = None


class AnomalyFlag(BaseModel):
    record_index: int
    computed_rate_delta: float
    corrected_estimate: float


class BatchReport(BaseModel):
    csv_body: str
    log_csv: str
    log_html: str


# ---------------------------------------------------------------------------
# Batch request / result envelopes
# ---------------------------------------------------------------------------

class BatchRequest(BaseModel):
    customer: str = ""
    location_id: str = ""
    location_address: Optional[str] = None
    email: str = ""


class BatchResult(BaseModel):
    success: bool
    message: str = ""
    files_considered: int = 0
    records: list[BillingRecord] = Field(default_factory=list)
    anomalies: list[AnomalyFlag] = Field(default_factory=list)
    email_sent: bool = False


class QueueEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    filename: str
    status: str
    error: Optional[str] = None
    updated_at: Optional[datetime] = None
