"""
LLMWhisperer OCR client.

Submission returns a ``whisper_hash`` job handle; retrieval polls the
``whisper-retrieve`` endpoint until the text is ready or the attempt budget
runs out.
"""
from __future__ import annotations

import logging
import time
from typing import Callable

import requests
from tenacity import RetryError, Retrying, retry_if_result, stop_after_attempt, wait_fixed

from app.config import PipelineConfig
from app.exceptions import RetrievalError, RetrievalTimeout, SubmissionError

logger = logging.getLogger(__name__)


def _not_ready(text: str) -> bool:
    return not text.strip()


class OCRClient:
    def __init__(self, config: PipelineConfig, sleep: Callable[[float], None] = time.sleep):
        self.base_url = config.ocr_endpoint.rstrip("/")
        self.api_key = config.ocr_api_key
        self.mode = config.ocr_mode
        self.max_attempts = config.max_attempts
        self.poll_interval = config.poll_interval
        self.timeout = config.http_timeout
        self.sleep = sleep

    def submit(self, filename: str, content: bytes) -> str:
        """Send raw document bytes; return the job handle."""
        try:
            response = requests.post(
                f"{self.base_url}/whisper",
                params={"mode": self.mode},
                headers={
                    "unstract-key": self.api_key,
                    "Content-Type": "application/octet-stream",
                },
                data=content,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise SubmissionError(f"OCR submit failed for {filename}: {e}") from e

        if not response.ok:
            raise SubmissionError(
                f"OCR submit failed: {response.status_code} {response.reason}"
            )

        try:
            job_handle = response.json().get("whisper_hash")
        except ValueError:
            job_handle = None
        if not job_handle:
            raise SubmissionError("OCR response missing whisper_hash")

        logger.info("Submitted %s to OCR, job %s", filename, job_handle)
        return job_handle

    def _fetch_text(self, job_handle: str) -> str:
        try:
            response = requests.get(
                f"{self.base_url}/whisper-retrieve",
                params={"whisper_hash": job_handle, "text_only": "true"},
                headers={"unstract-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise RetrievalError(f"OCR retrieve failed for job {job_handle}: {e}") from e

        if not response.ok:
            raise RetrievalError(f"HTTP {response.status_code}: {response.text}")
        return response.text

    def _log_wait(self, retry_state) -> None:
        logger.info(
            "OCR job %s still processing... (%d/%d)",
            retry_state.args[0],
            retry_state.attempt_number,
            self.max_attempts,
        )

    def retrieve(self, job_handle: str) -> str:
        """Poll until the job's text is non-empty.

        Empty text means "not ready" and is retried; any non-2xx answer ends
        the poll straight away.
        """
        retryer = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.poll_interval),
            retry=retry_if_result(_not_ready),
            before_sleep=self._log_wait,
            sleep=self.sleep,
        )
        try:
            text = retryer(self._fetch_text, job_handle)
        except RetryError:
            waited = (self.max_attempts - 1) * self.poll_interval
            raise RetrievalTimeout(
                f"OCR job {job_handle} timed out after {self.max_attempts} attempts ({waited:g}s)"
            ) from None
        return text.strip()
