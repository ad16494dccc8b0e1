"""
Clients for the remote services the bill pipeline talks to.
"""
from app.clients.extraction import ExtractionClient
from app.clients.notifier import NotifierClient
from app.clients.ocr import OCRClient

__all__ = ["ExtractionClient", "NotifierClient", "OCRClient"]
