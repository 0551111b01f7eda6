from __future__ import annotations

import csv
import io
import json
import os
from typing import Tuple

TABULAR_EXTENSIONS = ('.csv',)


def csv_to_json_text(text: str) -> str:
    """Convert CSV text (header row first) to a JSON array of row objects."""
    rows = list(csv.DictReader(io.StringIO(text)))
    return json.dumps(rows, ensure_ascii=False, indent=2)


def _source_name(file_obj) -> str:
    if hasattr(file_obj, 'name'):
        path = file_obj.name
    elif hasattr(file_obj, 'read'):
        path = None
    else:
        path = file_obj
    return os.path.basename(str(path)) if path else 'unnamed.json'


def read_text_content(file_obj) -> Tuple[str, str]:
    """Read an uploaded file or file path as `(text, source_name)`.

    CSV files are converted to JSON text; anything else is returned as-is,
    valid JSON or not.
    """
    if file_obj is None:
        raise ValueError("No file uploaded.")

    source_name = _source_name(file_obj)

    if hasattr(file_obj, 'read'):
        if hasattr(file_obj, 'seek'):
            file_obj.seek(0)
        content = file_obj.read()
        if isinstance(content, bytes):
            content = content.decode('utf-8-sig')
    else:
        path = file_obj.name if hasattr(file_obj, 'name') else file_obj
        with open(path, 'r', encoding='utf-8-sig') as f:
            content = f.read()

    if source_name.lower().endswith(TABULAR_EXTENSIONS):
        content = csv_to_json_text(content)
    return content, source_name
