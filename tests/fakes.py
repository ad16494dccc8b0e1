"""
In-memory stand-ins for the document store and the remote services.
"""
from app.exceptions import RetrievalTimeout, StoreError, SubmissionError


class FakeStore:
    def __init__(self, files=None):
        self.files = dict(files or {})
        self.deleted = []
        self.fail_list = False

    def list(self):
        if self.fail_list:
            raise StoreError("bucket unavailable")
        return sorted(self.files)

    def download(self, filename):
        if filename not in self.files:
            raise StoreError(f"Failed to download {filename}")
        return self.files[filename]

    def delete(self, filename):
        self.files.pop(filename, None)
        self.deleted.append(filename)


class FakeOCR:
    """``texts`` maps filename → OCR text; an exception value is raised instead."""

    def __init__(self, texts=None, reject=()):
        self.texts = dict(texts or {})
        self.reject = set(reject)
        self.submitted = []

    def submit(self, filename, content):
        self.submitted.append(filename)
        if filename in self.reject:
            raise SubmissionError("OCR submit failed: 500 Internal Server Error")
        return f"job-{filename}"

    def retrieve(self, job_handle):
        filename = job_handle[len("job-"):]
        value = self.texts.get(filename, RetrievalTimeout(f"OCR job {job_handle} timed out"))
        if isinstance(value, Exception):
            raise value
        return value


class FakeExtractor:
    """``results`` maps OCR text → list of reading dicts, or an exception."""

    def __init__(self, results=None):
        self.results = dict(results or {})
        self.calls = []

    def extract(self, text, retry=False, guess=None):
        self.calls.append((text, retry, guess))
        value = self.results.get(text, [])
        if isinstance(value, Exception):
            raise value
        return value


class FakeNotifier:
    def __init__(self, ok=True, explode=False):
        self.ok = ok
        self.explode = explode
        self.sent = []

    def send(self, to, subject, html_body, attachment_name, attachment):
        if self.explode:
            raise RuntimeError("smtp down")
        self.sent.append(
            {
                "to": to,
                "subject": subject,
                "html": html_body,
                "attachment_name": attachment_name,
                "attachment": attachment,
            }
        )
        return self.ok
