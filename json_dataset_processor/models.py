"""Entries (one processed document) and merged datasets."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2024-05-01T12:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


def new_id(kind: str) -> str:
    return f"{kind}-{uuid4().hex}"


class EntryStatus(Enum):
    REPAIRED = "repaired"
    REPAIRED_WITH_WARNING = "repaired_with_warning"
    FAILED = "failed"


@dataclass(frozen=True)
class Entry:
    id: str
    source_name: str
    raw_text: str
    repaired_text: str
    canonical_value: Any
    field_paths: List[str]
    status: EntryStatus
    created_at: str
    repair_note: Optional[str] = None
    # Later analysis results are added here; nothing else changes after creation.
    enrichment: Dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.status is EntryStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'source_name': self.source_name,
            'raw_text': self.raw_text,
            'repaired_text': self.repaired_text,
            'canonical_value': self.canonical_value,
            'field_paths': list(self.field_paths),
            'repair_note': self.repair_note,
            'status': self.status.value,
            'created_at': self.created_at,
            'enrichment': dict(self.enrichment),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Entry':
        return cls(
            id=data['id'],
            source_name=data.get('source_name', ''),
            raw_text=data.get('raw_text', ''),
            repaired_text=data.get('repaired_text', data.get('raw_text', '')),
            canonical_value=data.get('canonical_value'),
            field_paths=list(data.get('field_paths') or []),
            repair_note=data.get('repair_note'),
            status=EntryStatus(data.get('status', EntryStatus.REPAIRED.value)),
            created_at=data.get('created_at', ''),
            enrichment=dict(data.get('enrichment') or {}),
        )


@dataclass(frozen=True)
class MergedDataset:
    id: str
    name: str
    created_at: str
    records: List[Dict[str, Any]]
    fields: List[str]
    schema: Dict[str, str]

    @property
    def record_count(self) -> int:
        return len(self.records)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'created_at': self.created_at,
            'records': self.records,
            'fields': list(self.fields),
            'schema': dict(self.schema),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MergedDataset':
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            created_at=data.get('created_at', ''),
            records=list(data.get('records') or []),
            fields=list(data.get('fields') or []),
            schema=dict(data.get('schema') or {}),
        )
