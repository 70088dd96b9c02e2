"""Errors raised by the record store and mapped to HTTP responses in main."""

from typing import List


class RecordStoreError(Exception):
    """Base class for record store failures."""


class ValidationError(RecordStoreError):
    """One or more field rules failed; nothing was written."""

    def __init__(self, details: List[str]):
        super().__init__("; ".join(details))
        self.details = list(details)


class RecordNotFound(RecordStoreError):
    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class StoreError(RecordStoreError):
    """The database could not be reached or rejected the operation."""
