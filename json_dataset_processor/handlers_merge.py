from __future__ import annotations

import json
import os
import tempfile
from typing import Any, List, Optional

import gradio as gr

from .errors import ProcessorError
from .models import MergedDataset
from .workspace import Workspace

PREVIEW_ROWS = 5
SCHEMA_TABLE_HEADERS = ["Field", "Type", "Sample"]


def dataset_choices(workspace: Workspace):
    return [(f"{ds.name} ({ds.record_count} records, {ds.created_at})", ds.id) for ds in workspace.datasets]


def dataset_dropdown_update(workspace: Workspace, selected: Optional[str] = None):
    choices = dataset_choices(workspace)
    if selected is None and choices:
        selected = choices[0][1]
    return gr.update(choices=choices, value=selected)


def sample_value(dataset: MergedDataset, field: str) -> str:
    """First value of `field` in the dataset, rendered for a table cell."""
    for record in dataset.records:
        if field in record:
            value = record[field]
            if isinstance(value, (dict, list)):
                return json.dumps(value, ensure_ascii=False)
            return "null" if value is None else str(value)
    return ""


def schema_table(dataset: MergedDataset) -> List[List[Any]]:
    return [[field, dataset.schema.get(field, ""), sample_value(dataset, field)] for field in dataset.fields]


def summarize_dataset(dataset: MergedDataset) -> str:
    return f"{dataset.name}: {dataset.record_count} records, {len(dataset.fields)} fields."


def merge_entries_handler(workspace: Workspace, selected_ids, name: Optional[str] = None):
    if isinstance(selected_ids, str):
        selected_ids = [selected_ids]

    try:
        dataset = workspace.merge(selected_ids or [], name=(name or "").strip() or None)
    except ProcessorError as exc:
        return f"Error merging entries: {str(exc)}", dataset_dropdown_update(workspace), None, []

    preview = dataset.records[:PREVIEW_ROWS]
    return summarize_dataset(dataset), dataset_dropdown_update(workspace, dataset.id), preview, schema_table(dataset)


def dataset_detail_handler(workspace: Workspace, dataset_id: Optional[str]):
    if not dataset_id:
        return "", None, []
    try:
        dataset = workspace.get_dataset(dataset_id)
    except KeyError as e:
        return str(e), None, []
    return summarize_dataset(dataset), dataset.records[:PREVIEW_ROWS], schema_table(dataset)


def export_dataset_handler(workspace: Workspace, dataset_id: Optional[str], output_format: str):
    if not dataset_id:
        return None, "No dataset selected."

    try:
        result = workspace.export(dataset_id, output_format)
    except (KeyError, ProcessorError) as exc:
        return None, f"Error exporting dataset: {str(exc)}"

    temp_dir = tempfile.gettempdir()
    path = os.path.join(temp_dir, result.suggested_filename)

    try:
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(result.content)
    except (OSError, UnicodeError) as exc:
        if os.path.exists(path):
            os.remove(path)
        return None, f"Error writing export file: {str(exc)}"
    return path, f"Export successful! Saved to {path}"


def delete_dataset_handler(workspace: Workspace, dataset_id: Optional[str]):
    if not dataset_id:
        return "No dataset selected.", dataset_dropdown_update(workspace)
    removed = workspace.delete_dataset(dataset_id)
    message = "Dataset deleted." if removed else "Dataset not found."
    return message, dataset_dropdown_update(workspace)


def reset_all_handler(workspace: Workspace):
    workspace.reset()
    empty = gr.update(choices=[], value=None)
    return "All entries and datasets deleted.", [], gr.update(choices=[], value=[]), empty, empty
