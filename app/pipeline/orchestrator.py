"""
Batch orchestrator.

One run takes every eligible file in the document store through
discover → filter → claim → submit → wait → retrieve → extract → validate →
report → notify → record status → cleanup. Per-file failures are recorded
against that file and never stop its siblings.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Callable, Optional

from pydantic import ValidationError

from app.clients import ExtractionClient, NotifierClient, OCRClient
from app.config import PipelineConfig
from app.exceptions import (
    ExtractionError,
    OCRError,
    StoreError,
    SubmissionError,
)
from app.ledger import StatusLedger
from app.models.queue_entry import COMPLETED, FAILED
from app.pipeline.anomaly import detect_anomalies
from app.pipeline.report import (
    attachment_filename,
    build_report,
    email_subject,
    render_email_body,
)
from app.schemas import (
    BatchReport,
    BatchRequest,
    BatchResult,
    BillDocument,
    BillingRecord,
    ExtractionJob,
    MeterReading,
    ProcessingLogEntry,
)
from app.storage import LocalDocumentStore

logger = logging.getLogger(__name__)

VALID_EXTENSIONS = (".pdf", ".jpg", ".png")
INVALID_EXTENSION_ERROR = "Invalid file extension. Only .pdf, .jpg, .png allowed."
NO_TEXT_ERROR = "No text extracted from OCR service"
NOTHING_TO_PROCESS = "No files to process"
NO_VALID_FILES = "No valid files to process"


def is_valid_extension(filename: str) -> bool:
    return os.path.splitext(filename)[1].lower() in VALID_EXTENSIONS


def _error_record(filename: str, index: int, error: str) -> BillingRecord:
    return BillingRecord(filename=filename, sequence_index=index, error=error)


class BatchOrchestrator:
    def __init__(
        self,
        config: PipelineConfig,
        store: LocalDocumentStore,
        ledger: StatusLedger,
        ocr: OCRClient,
        extractor: ExtractionClient,
        notifier: NotifierClient,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.store = store
        self.ledger = ledger
        self.ocr = ocr
        self.extractor = extractor
        self.notifier = notifier
        self.sleep = sleep

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self, request: BatchRequest) -> BatchResult:
        logger.info("Batch start for customer=%s site=%s", request.customer, request.location_id)
        try:
            candidates = self._discover()
        except Exception as e:
            logger.exception("Batch aborted while listing candidate files")
            return BatchResult(success=False, message=f"Internal error: {e}")

        claimed: list[str] = []
        try:
            log: list[ProcessingLogEntry] = []
            valid = self._reject_invalid(candidates, log)
            claimed = self.ledger.claim_all(valid)
            if not claimed:
                # candidates existed but every one was rejected or claimed elsewhere
                message = NO_VALID_FILES if candidates else NOTHING_TO_PROCESS
                logger.info(message)
                return BatchResult(
                    success=True, message=message, files_considered=len(candidates)
                )
            return self._process(request, claimed, log, len(candidates))
        except Exception as e:
            logger.exception("Batch crashed after claiming %d files", len(claimed))
            self._release(claimed, f"Internal error: {e}")
            return BatchResult(
                success=False, message=f"Internal error: {e}", files_considered=len(candidates)
            )

    def _process(
        self,
        request: BatchRequest,
        claimed: list[str],
        log: list[ProcessingLogEntry],
        considered: int,
    ) -> BatchResult:
        jobs = self._submit_all(claimed, log)

        if jobs:
            logger.info(
                "Waiting %gs for OCR to process %d files...", self.config.fixed_wait, len(jobs)
            )
            self.sleep(self.config.fixed_wait)

        texts = self._retrieve_all(jobs, log)
        records = self._extract_all(texts)

        logger.info("Checking for anomalies across meters...")
        flags = detect_anomalies(records, self.config.anomaly_threshold)

        report = build_report(records, log)
        email_sent = self._notify(request, report, records, len(claimed))

        self._record_status(claimed, records, log)
        good = sum(1 for r in records if not r.error)
        logger.info("Batch complete! Extracted %d records from %d files.", good, len(claimed))

        self._cleanup()

        return BatchResult(
            success=True,
            message=f"Processed {good} records from {len(claimed)} files",
            files_considered=considered,
            records=records,
            anomalies=flags,
            email_sent=email_sent,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _discover(self) -> list[str]:
        objects = self.store.list()
        in_flight = self.ledger.in_flight_filenames()
        candidates = [name for name in objects if name not in in_flight]
        logger.info(
            "Found %d objects, %d already in flight, %d candidates",
            len(objects), len(objects) - len(candidates), len(candidates),
        )
        return candidates

    def _reject_invalid(self, candidates: list[str], log: list[ProcessingLogEntry]) -> list[str]:
        valid: list[str] = []
        for name in candidates:
            if is_valid_extension(name):
                valid.append(name)
                continue
            logger.warning("Invalid file extension: %s", name)
            self.ledger.upsert(name, FAILED, INVALID_EXTENSION_ERROR)
            log.append(
                ProcessingLogEntry(
                    filename=name, stage="validation", status="failed", error=INVALID_EXTENSION_ERROR
                )
            )
        return valid

    def _submit_all(self, filenames: list[str], log: list[ProcessingLogEntry]) -> list[ExtractionJob]:
        logger.info("Submitting %d files to OCR...", len(filenames))
        jobs: list[ExtractionJob] = []
        for name in filenames:
            try:
                doc = BillDocument.from_bytes(name, self.store.download(name))
                handle = self.ocr.submit(doc.filename, doc.content)
            except (StoreError, SubmissionError) as e:
                logger.warning("Submission failed for %s: %s", name, e)
                log.append(ProcessingLogEntry(filename=name, stage="submission", status="failed", error=str(e)))
                continue
            jobs.append(ExtractionJob(filename=name, job_handle=handle))
            log.append(ProcessingLogEntry(filename=name, stage="submission", status="submitted"))
        return jobs

    def _retrieve_all(
        self, jobs: list[ExtractionJob], log: list[ProcessingLogEntry]
    ) -> list[tuple[str, Optional[str], str]]:
        logger.info("Retrieving OCR results for %d jobs", len(jobs))
        texts: list[tuple[str, Optional[str], str]] = []
        for job in jobs:
            try:
                text = self.ocr.retrieve(job.job_handle)
            except OCRError as e:
                logger.warning("Retrieval failed for %s: %s", job.filename, e)
                texts.append((job.filename, None, str(e)))
                log.append(
                    ProcessingLogEntry(filename=job.filename, stage="retrieval", status="failed", error=str(e))
                )
                continue
            texts.append((job.filename, text or None, ""))
            log.append(ProcessingLogEntry(filename=job.filename, stage="retrieval", status="retrieved"))
        return texts

    def _extract_all(self, texts: list[tuple[str, Optional[str], str]]) -> list[BillingRecord]:
        logger.info("Sending %d texts to the extraction model", len(texts))
        records: list[BillingRecord] = []
        for filename, text, error in texts:
            if error or not text:
                records.append(_error_record(filename, len(records), error or NO_TEXT_ERROR))
                continue

            try:
                readings = [MeterReading.model_validate(item) for item in self.extractor.extract(text)]
            except (ExtractionError, ValidationError) as e:
                logger.warning("Extraction failed for %s: %s", filename, e)
                records.append(_error_record(filename, len(records), f"Extraction failed: {e}"))
                continue

            for reading in readings:
                records.append(
                    BillingRecord(filename=filename, sequence_index=len(records), **reading.model_dump())
                )
            logger.info("Extracted %d meter readings from %s", len(readings), filename)
        return records

    def _notify(
        self,
        request: BatchRequest,
        report: BatchReport,
        records: list[BillingRecord],
        file_count: int,
    ) -> bool:
        good = sum(1 for r in records if not r.error)
        name = attachment_filename(request.customer)
        try:
            return self.notifier.send(
                request.email,
                email_subject(request),
                render_email_body(request, report, good, file_count),
                name,
                report.csv_body.encode("utf-8"),
            )
        except Exception:
            # Delivery is best effort; the ledger still gets updated
            logger.exception("Failed to send report email to %s", request.email)
            return False

    def _record_status(
        self,
        claimed: list[str],
        records: list[BillingRecord],
        log: list[ProcessingLogEntry],
    ) -> None:
        for name in claimed:
            errors = [r.error for r in records if r.filename == name and r.error]
            errors += [e.error for e in log if e.filename == name and e.status == "failed" and e.error]
            errors = list(dict.fromkeys(errors))
            status = FAILED if errors else COMPLETED
            try:
                self.ledger.upsert(name, status, "; ".join(errors) or None)
            except Exception:
                logger.exception("Failed to update queue for %s", name)

    def _release(self, claimed: list[str], error: str) -> None:
        for name in claimed:
            try:
                self.ledger.upsert(name, FAILED, error)
            except Exception:
                logger.exception("Failed to release %s", name)

    def _cleanup(self) -> None:
        # Sweeps the whole bucket, including files uploaded after discovery
        try:
            names = self.store.list()
        except StoreError as e:
            logger.error("Failed to list files for cleanup: %s", e)
            return
        for name in names:
            try:
                self.store.delete(name)
            except StoreError as e:
                logger.error("Failed to delete %s: %s", name, e)
                continue
            logger.info("Deleted: %s", name)
