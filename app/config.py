"""
Application settings and the pipeline configuration object.
"""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Ledger database
    DATABASE_URL: str = "sqlite:///./data/billread.db"

    DEBUG: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # File storage
    DATA_DIR: str = "./data"
    BILLS_DIR: str = "./data/bills"

    # OCR (LLMWhisperer)
    OCR_ENDPOINT: str = "https://llmwhisperer-api.us-central.unstract.com/api/v2"
    OCR_API_KEY: str = ""
    OCR_MODE: str = "high_quality"

    # LLM extraction
    EXTRACTION_ENDPOINT: str = "https://api.openai.com/v1/chat/completions"
    EXTRACTION_API_KEY: str = ""
    EXTRACTION_MODEL: str = "gpt-5.1"

    # E-mail delivery (Resend)
    NOTIFIER_ENDPOINT: str = "https://api.resend.com/emails"
    NOTIFIER_API_KEY: str = ""
    NOTIFIER_SENDER: str = "Bills <bills@example.com>"

    # Pipeline tunables
    POLL_INTERVAL: float = 10
    MAX_ATTEMPTS: int = 2
    FIXED_WAIT: float = 60
    ANOMALY_THRESHOLD: float = 0.15
    HTTP_TIMEOUT: float = 60

    class Config:
        env_file = ".env"
        case_sensitive = True


class PipelineConfig(BaseModel):
    """Everything one batch run needs to know about its collaborators."""
    ocr_endpoint: str
    ocr_api_key: str = ""
    ocr_mode: str = "high_quality"
    extraction_endpoint: str
    extraction_api_key: str = ""
    extraction_model: str = "gpt-5.1"
    notifier_endpoint: str = "https://api.resend.com/emails"
    notifier_api_key: str = ""
    notifier_sender: str = "Bills <bills@example.com>"
    poll_interval: float = Field(default=10, ge=0)
    max_attempts: int = Field(default=2, ge=1)
    fixed_wait: float = Field(default=60, ge=0)
    anomaly_threshold: float = Field(default=0.15, gt=0)
    http_timeout: float = Field(default=60, gt=0)

    @classmethod
    def from_settings(cls, s: Settings) -> "PipelineConfig":
        return cls(
            ocr_endpoint=s.OCR_ENDPOINT,
            ocr_api_key=s.OCR_API_KEY,
            ocr_mode=s.OCR_MODE,
            extraction_endpoint=s.EXTRACTION_ENDPOINT,
            extraction_api_key=s.EXTRACTION_API_KEY,
            extraction_model=s.EXTRACTION_MODEL,
            notifier_endpoint=s.NOTIFIER_ENDPOINT,
            notifier_api_key=s.NOTIFIER_API_KEY,
            notifier_sender=s.NOTIFIER_SENDER,
            poll_interval=s.POLL_INTERVAL,
            max_attempts=s.MAX_ATTEMPTS,
            fixed_wait=s.FIXED_WAIT,
            anomaly_threshold=s.ANOMALY_THRESHOLD,
            http_timeout=s.HTTP_TIMEOUT,
        )


settings = Settings()
