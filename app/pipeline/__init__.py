"""
Bill-processing core pipeline.

Orchestrates: discover → OCR → extract → anomaly check → report → notify →
record status → cleanup.
"""
import logging
from typing import Optional

from app.clients import ExtractionClient, NotifierClient, OCRClient
from app.config import PipelineConfig, settings
from app.database import SessionLocal
from app.ledger import StatusLedger
from app.pipeline.orchestrator import BatchOrchestrator
from app.schemas import BatchRequest, BatchResult
from app.storage import LocalDocumentStore

logger = logging.getLogger(__name__)


def process_batch(
    request: BatchRequest, config: Optional[PipelineConfig] = None
) -> BatchResult:
    """Run one batch with production collaborators built from settings.

    Meant to be scheduled as a background task; owns its own DB session.
    """
    config = config or PipelineConfig.from_settings(settings)
    db = SessionLocal()
    try:
        orchestrator = BatchOrchestrator(
            config=config,
            store=LocalDocumentStore(settings.BILLS_DIR),
            ledger=StatusLedger(db),
            ocr=OCRClient(config),
            extractor=ExtractionClient(config),
            notifier=NotifierClient(config),
        )
        result = orchestrator.run(request)
    finally:
        db.close()
    logger.info("Batch finished: success=%s message=%s", result.success, result.message)
    return result
