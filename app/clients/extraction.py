"""
Language-model extraction client (OpenAI chat completions).

Turns OCR text into a list of per-meter billing readings.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

import requests

from app.clients.prompts import get_extraction_prompt
from app.config import PipelineConfig
from app.exceptions import ExtractionError, ExtractionParseError

logger = logging.getLogger(__name__)

TEMPERATURE = 0.1


def parse_results(content: str) -> list[dict[str, Any]]:
    """Decode the model's JSON object and return its ``results`` list."""
    if not content:
        raise ExtractionParseError("Empty response from extraction service")
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        raise ExtractionParseError(
            f"Failed to parse response as JSON: {e}\nRaw content: {content}"
        ) from e

    results = parsed.get("results") if isinstance(parsed, dict) else None
    if not isinstance(results, list):
        raise ExtractionParseError('Response missing valid "results" array')
    if not all(isinstance(item, dict) for item in results):
        raise ExtractionParseError('"results" array must contain only objects')
    return results


class ExtractionClient:
    def __init__(self, config: PipelineConfig):
        self.endpoint = config.extraction_endpoint
        self.api_key = config.extraction_api_key
        self.model = config.extraction_model
        self.timeout = config.http_timeout

    def _complete(self, text: str, retry: bool, guess: Optional[float]) -> str:
        try:
            response = requests.post(
                self.endpoint,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": get_extraction_prompt(retry, guess)},
                        {"role": "user", "content": text},
                    ],
                    "temperature": TEMPERATURE,
                    "response_format": {"type": "json_object"},
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise ExtractionError(f"Failed to reach extraction service: {e}") from e

        if not response.ok:
            raise ExtractionError(
                f"Extraction service returned status {response.status_code}: {response.text}"
            )

        try:
            return response.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ExtractionError(f"Unexpected completion payload: {e}") from e

    def complete(self, text: str, retry: bool = False, guess: Optional[float] = None) -> str:
        """Raw model content, or ``""`` when the call itself failed."""
        if retry:
            logger.info("Re-querying extraction with kWh guess %s", guess)
        try:
            return self._complete(text, retry, guess)
        except ExtractionError as e:
            logger.warning("Error during extraction: %s", e)
            return ""

    def extract(
        self, text: str, retry: bool = False, guess: Optional[float] = None
    ) -> list[dict[str, Any]]:
        """Return one dict per meter & billing period found in *text*.

        A failed service call surfaces as an empty response, which fails
        parsing the same way a malformed answer does.
        """
        return parse_results(self.complete(text, retry=retry, guess=guess))
