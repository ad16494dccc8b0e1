"""
E-mail delivery through the Resend HTTP API.
"""
from __future__ import annotations

import base64
import logging

import requests

from app.config import PipelineConfig

logger = logging.getLogger(__name__)


class NotifierClient:
    def __init__(self, config: PipelineConfig):
        self.endpoint = config.notifier_endpoint
        self.api_key = config.notifier_api_key
        self.sender = config.notifier_sender
        self.timeout = config.http_timeout

    def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        attachment_name: str,
        attachment: bytes,
    ) -> bool:
        """Deliver one e-mail with one attachment. Returns False on failure."""
        payload = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html_body,
            "attachments": [
                {
                    "filename": attachment_name,
                    "content": base64.b64encode(attachment).decode("ascii"),
                }
            ],
        }
        try:
            response = requests.post(
                self.endpoint,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Failed to send email to %s: %s", to, e)
            return False

        if not response.ok:
            logger.error(
                "Email delivery to %s rejected: %s %s",
                to, response.status_code, response.text,
            )
            return False

        logger.info("Email sent to %s with file: %s", to, attachment_name)
        return True
