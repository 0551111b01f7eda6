"""Core logic for JSON Dataset Processor.

The Gradio UI lives in `app.py`. This package contains the pipeline that:
- repairs malformed JSON text
- canonicalizes documents and extracts their dot-path fields
- flattens documents into records and infers a per-field schema
- merges entries into datasets and exports them
"""
