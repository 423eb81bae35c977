# ingest_errors.py
from enum import Enum


class IngestError(Exception):
    """Base class for everything the bucket walk can raise."""


# ---------- Key parsing ----------
class ParseErrorKind(str, Enum):
    EMPTY_KEY = "empty_key"
    MALFORMED_PREFIX = "malformed_prefix"
    MALFORMED_IDENTIFIER = "malformed_identifier"


class ParseError(IngestError):
    def __init__(self, kind: ParseErrorKind, key: str, detail: str = ""):
        self.kind = kind
        self.key = key
        self.detail = detail
        super().__init__(f"Parse error {kind.value}: {detail or key!r}")


# ---------- S3 listing ----------
class ServiceError(IngestError):
    """A list_objects_v2 call failed; the walk stops here."""

    def __init__(self, bucket: str, cause: Exception):
        self.bucket = bucket
        self.cause = cause
        super().__init__(f"S3 error listing {bucket}: {cause}")


# ---------- MySQL ----------
class StoreError(IngestError):
    """One row could not be inserted."""

    def __init__(self, record, cause: Exception):
        self.record = record
        self.cause = cause
        super().__init__(f"DB insert error for {record.source_key}: {cause}")


class StoreConnectionError(IngestError):
    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"DB connection failed: {cause}")
