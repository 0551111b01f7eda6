from __future__ import annotations

from typing import Any, List, Optional, Tuple

import gradio as gr

from .errors import ProcessorError
from .io_utils import read_text_content
from .models import Entry
from .options import ProcessingOptions
from .schema_utils import build_tree_from_keys
from .workspace import Workspace

ENTRY_TABLE_HEADERS = ["Source", "Status", "Fields", "Created", "Note"]
QUEUE_TABLE_HEADERS = ["Source", "Status", "Error"]


def options_from_inputs(auto_format, detect_schemas, flatten_nested, max_depth,
                        trim_long_values, max_value_length, preserve_arrays) -> ProcessingOptions:
    return ProcessingOptions(
        auto_format=bool(auto_format),
        detect_schemas=bool(detect_schemas),
        flatten_nested=bool(flatten_nested),
        max_depth=int(max_depth),
        trim_long_values=bool(trim_long_values),
        max_value_length=int(max_value_length),
        preserve_arrays=bool(preserve_arrays),
    )


def update_options_handler(workspace: Workspace, *values) -> str:
    try:
        workspace.set_options(options_from_inputs(*values))
    except (TypeError, ValueError) as e:
        return f"Invalid options: {str(e)}"
    return "Options updated."


def entry_label(entry: Entry) -> str:
    return f"{entry.source_name} ({entry.status.value}, {entry.created_at})"


def entries_table(workspace: Workspace) -> List[List[Any]]:
    return [
        [entry.source_name, entry.status.value, len(entry.field_paths), entry.created_at, entry.repair_note or ""]
        for entry in workspace.entries
    ]


def queue_table(workspace: Workspace) -> List[List[Any]]:
    return [[item.source_name, item.status.value, item.error_message or ""] for item in workspace.queue.snapshot()]


def entry_choices(workspace: Workspace) -> List[Tuple[str, str]]:
    return [(entry_label(entry), entry.id) for entry in workspace.entries]


def entry_selection_update(workspace: Workspace):
    return gr.update(choices=entry_choices(workspace), value=[])


def entry_dropdown_update(workspace: Workspace):
    choices = entry_choices(workspace)
    return gr.update(choices=choices, value=choices[0][1] if choices else None)


def summarize_entry(entry: Entry) -> str:
    if entry.failed:
        return f"{entry.source_name}: failed. {entry.repair_note}"
    message = f"{entry.source_name}: processed. Found {len(entry.field_paths)} unique fields."
    if entry.repair_note:
        message += f" {entry.repair_note}"
    return message


def process_text_handler(workspace: Workspace, text: str):
    if not text or not text.strip():
        return text, "Please enter JSON text to process.", entries_table(workspace), entry_selection_update(workspace), entry_dropdown_update(workspace)

    entry = workspace.submit_text(text, "manual-entry.json")
    # Keep the input around when it could not be processed so it can be fixed by hand.
    remaining = text if entry.failed else ""
    return remaining, summarize_entry(entry), entries_table(workspace), entry_selection_update(workspace), entry_dropdown_update(workspace)


def upload_files_handler(workspace: Workspace, files):
    if not files:
        return "No file uploaded.", entries_table(workspace), entry_selection_update(workspace), entry_dropdown_update(workspace), queue_table(workspace)

    if not isinstance(files, list):
        files = [files]

    read_errors: List[str] = []
    for file_obj in files:
        try:
            text, source_name = read_text_content(file_obj)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            read_errors.append(f"Error reading file: {str(e)}")
            continue
        workspace.enqueue(text, source_name)

    processed = workspace.drain_queue()
    failed = sum(1 for entry in processed if entry.failed)
    status = f"Processed {len(processed)} file(s), {failed} failed."
    if read_errors:
        status += " " + " ".join(read_errors)
    return status, entries_table(workspace), entry_selection_update(workspace), entry_dropdown_update(workspace), queue_table(workspace)


def clear_queue_handler(workspace: Workspace):
    dropped = workspace.clear_queue()
    return f"Cleared {dropped} queued item(s).", queue_table(workspace)


def entry_detail_handler(workspace: Workspace, entry_id: Optional[str]):
    if not entry_id:
        return None, None, ""
    try:
        entry = workspace.get_entry(entry_id)
    except KeyError as e:
        return None, None, str(e)
    if entry.failed:
        return None, None, summarize_entry(entry)
    return entry.canonical_value, build_tree_from_keys(entry.field_paths), summarize_entry(entry)


def analyze_entry_handler(workspace: Workspace, entry_id: Optional[str]):
    if not entry_id:
        return None, "Select an entry to analyze."
    try:
        analysis = workspace.analyze_entry(entry_id)
    except (KeyError, ProcessorError) as e:
        return None, f"Error analyzing entry: {str(e)}"
    return analysis, "Analysis complete."


def delete_entries_handler(workspace: Workspace, selected_ids):
    if not selected_ids:
        return "No entries selected.", entries_table(workspace), entry_selection_update(workspace), entry_dropdown_update(workspace)
    removed = workspace.delete_entries(selected_ids)
    return f"Deleted {removed} entries.", entries_table(workspace), entry_selection_update(workspace), entry_dropdown_update(workspace)
