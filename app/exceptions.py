"""
Exceptions raised by the bill pipeline and its service clients.
"""


class BillReadError(Exception):
    """Base exception for all pipeline errors"""
    pass


class StoreError(BillReadError):
    """Raised when the document store cannot be listed, read or cleaned"""
    pass


class OCRError(BillReadError):
    pass


class SubmissionError(OCRError):
    """OCR service rejected a document or returned no job handle"""
    pass


class RetrievalError(OCRError):
    """OCR service answered a retrieve call with a non-2xx status"""
    pass


class RetrievalTimeout(RetrievalError):
    """OCR text was still empty after the last allowed attempt"""
    pass


class ExtractionError(BillReadError):
    """Error talking to the language-model extraction service"""
    pass


class ExtractionParseError(ExtractionError):
    """Model response was not a JSON object with a ``results`` list"""
    pass
