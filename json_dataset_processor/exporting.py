"""Dataset export formats.

Each format renders a MergedDataset to text; writing it anywhere is the
caller's job. Add new formats with `register_exporter()`.
"""
from __future__ import annotations

import csv
import io
import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from .errors import UnsupportedExportFormat
from .models import MergedDataset

# String fields longer than this are treated as document text by the rag format.
RAG_CONTENT_MIN_LENGTH = 100


@dataclass(frozen=True)
class ExportResult:
    content: str
    suggested_filename: str
    mime_type: str


@dataclass(frozen=True)
class ExportFormat:
    name: str
    filename_suffix: str
    mime_type: str
    render: Callable[[MergedDataset], str]


def _dump_pretty(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2)


def _dump_compact(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(',', ':'))


def render_json(dataset: MergedDataset) -> str:
    return _dump_pretty(dataset.records)


def render_jsonl(dataset: MergedDataset) -> str:
    return '\n'.join(_dump_compact(record) for record in dataset.records)


def csv_header(records: List[Dict[str, Any]]) -> List[str]:
    return list(dict.fromkeys(key for record in records for key in record))


def _csv_cell(value: Any) -> Any:
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (dict, list)):
        return _dump_compact(value)
    return value


def render_csv(dataset: MergedDataset) -> str:
    headers = csv_header(dataset.records)
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=headers, restval='')
    writer.writeheader()
    for record in dataset.records:
        writer.writerow({key: _csv_cell(value) for key, value in record.items()})
    return buf.getvalue()


def render_huggingface(dataset: MergedDataset) -> str:
    return _dump_pretty({
        'data': dataset.records,
        'schema': dataset.schema,
        'metadata': {
            'name': dataset.name,
            'timestamp': dataset.created_at,
            'record_count': dataset.record_count,
            'fields': dataset.fields,
        },
    })


def is_content_field(key: str, value: Any) -> bool:
    return not key.startswith('_') and isinstance(value, str) and len(value) > RAG_CONTENT_MIN_LENGTH


def rag_document(record: Dict[str, Any]) -> Dict[str, Any]:
    """Split a record into document text (long strings) and metadata (the rest)."""
    content = [value for key, value in record.items() if is_content_field(key, value)]
    metadata = {key: value for key, value in record.items() if not is_content_field(key, value)}
    return {'text': '\n\n'.join(content), 'metadata': metadata}


def render_rag(dataset: MergedDataset) -> str:
    return _dump_pretty({
        'name': dataset.name,
        'timestamp': dataset.created_at,
        'documents': [rag_document(record) for record in dataset.records],
        'metadata': {
            'record_count': dataset.record_count,
            'fields': dataset.fields,
            'schema': dataset.schema,
        },
    })


_FORMATS: Dict[str, ExportFormat] = {
    'json': ExportFormat('json', '.json', 'application/json', render_json),
    'jsonl': ExportFormat('jsonl', '.jsonl', 'application/x-jsonlines', render_jsonl),
    'csv': ExportFormat('csv', '.csv', 'text/csv', render_csv),
    'huggingface': ExportFormat('huggingface', '-huggingface.json', 'application/json', render_huggingface),
    'rag': ExportFormat('rag', '-rag.json', 'application/json', render_rag),
}


def register_exporter(export_format: ExportFormat) -> None:
    """Register a new export format at runtime."""
    name = export_format.name.lower()
    if name in _FORMATS:
        raise ValueError(f"Export format '{name}' already registered")
    _FORMATS[name] = export_format


def list_export_formats() -> List[str]:
    return list(_FORMATS.keys())


def get_export_format(fmt: str) -> ExportFormat:
    key = fmt.strip().lower() if isinstance(fmt, str) else fmt
    if key not in _FORMATS:
        raise UnsupportedExportFormat(fmt)
    return _FORMATS[key]


def dataset_file_stem(dataset: MergedDataset) -> str:
    return re.sub(r'\s+', '-', dataset.name)


def export_dataset(dataset: MergedDataset, fmt: str) -> ExportResult:
    export_format = get_export_format(fmt)
    return ExportResult(
        content=export_format.render(dataset),
        suggested_filename=dataset_file_stem(dataset) + export_format.filename_suffix,
        mime_type=export_format.mime_type,
    )
