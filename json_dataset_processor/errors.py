"""Exceptions raised by the processing pipeline.

Per-item problems (one bad document, one bad entry in a merge) are
recorded on that item; these exceptions cover whole-operation failures.
"""
from __future__ import annotations

from typing import Optional


class ProcessorError(Exception):
    """Base class for every error the pipeline surfaces to callers."""


class RepairFailure(ProcessorError):
    """All repair stages were exhausted without producing valid JSON."""


class ParseFailure(ProcessorError):
    """Text that was expected to be valid JSON did not parse."""


class MergeInputEmpty(ProcessorError):
    def __init__(self, message: str = "No valid entries selected for merging."):
        super().__init__(message)


class MergeRecordEmpty(ProcessorError):
    def __init__(self, message: str = "Merge produced no records."):
        super().__init__(message)


class UnsupportedExportFormat(ProcessorError):
    def __init__(self, fmt: Optional[str]):
        self.format = fmt
        super().__init__(f"Unsupported export format: {fmt}")


class StorageReadFailure(ProcessorError):
    """Stored entries or datasets could not be read; callers start empty."""


class AssistantUnavailable(ProcessorError):
    """The optional assistant timed out, raised, or kept returning failures."""


class FlattenKeyCollision(ProcessorError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Flattening produced the field {key!r} twice.")
