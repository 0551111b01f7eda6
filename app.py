import os
from functools import partial

import gradio as gr

from json_dataset_processor.exporting import list_export_formats
from json_dataset_processor.handlers_merge import (
    SCHEMA_TABLE_HEADERS,
    dataset_choices,
    dataset_detail_handler,
    delete_dataset_handler,
    export_dataset_handler,
    merge_entries_handler,
    reset_all_handler,
)
from json_dataset_processor.handlers_single import (
    ENTRY_TABLE_HEADERS,
    QUEUE_TABLE_HEADERS,
    analyze_entry_handler,
    clear_queue_handler,
    delete_entries_handler,
    entries_table,
    entry_choices,
    entry_detail_handler,
    process_text_handler,
    update_options_handler,
    upload_files_handler,
)
from json_dataset_processor.logging_ import setup_logging
from json_dataset_processor.options import ProcessingOptions, load_options
from json_dataset_processor.storage import JsonFileStorage
from json_dataset_processor.workspace import Workspace

setup_logging(os.environ.get("JSON_DATASET_LOG_LEVEL", "INFO"), os.environ.get("JSON_DATASET_LOG_FILE"))

options_path = os.environ.get("JSON_DATASET_OPTIONS")
workspace = Workspace(
    storage=JsonFileStorage(os.environ.get("JSON_DATASET_STORAGE", ".json_dataset_storage")),
    options=load_options(options_path) if options_path else ProcessingOptions(),
)
opts = workspace.options

# --- UI Definition ---
with gr.Blocks(title="JSON Dataset Processor") as demo:
    gr.Markdown("# JSON Dataset Processor")
    gr.Markdown("Repair and normalize JSON documents, then merge them into datasets for export.")

    with gr.Tab("Input"):
        with gr.Row():
            with gr.Column(scale=2):
                gr.Markdown("### 1. Paste or upload")
                json_input = gr.Textbox(label="JSON Text", lines=12, placeholder='{name: "Bob", age: 30,}')
                process_btn = gr.Button("Process JSON", variant="primary")
                file_input = gr.File(label="Upload JSON or CSV files", file_types=[".json", ".txt", ".csv"], file_count="multiple")
                input_status = gr.Textbox(label="Status", interactive=False)

                gr.Markdown("### Queue")
                queue_view = gr.Dataframe(headers=QUEUE_TABLE_HEADERS, interactive=False, label="Processing Queue")
                clear_queue_btn = gr.Button("Clear Queue")

            with gr.Column(scale=1):
                gr.Markdown("### 2. Processing options")
                auto_format = gr.Checkbox(label="Auto-format (sort keys)", value=opts.auto_format)
                detect_schemas = gr.Checkbox(label="Detect schemas on merge", value=opts.detect_schemas)
                flatten_nested = gr.Checkbox(label="Flatten nested objects", value=opts.flatten_nested)
                preserve_arrays = gr.Checkbox(label="Preserve arrays", value=opts.preserve_arrays)
                trim_long_values = gr.Checkbox(label="Trim long values", value=opts.trim_long_values)
                max_value_length = gr.Number(label="Max value length", value=opts.max_value_length, precision=0)
                max_depth = gr.Number(label="Max depth", value=opts.max_depth, precision=0)
                apply_options_btn = gr.Button("Apply Options")
                options_status = gr.Textbox(label="Options Status", interactive=False)

    with gr.Tab("Entries"):
        entries_view = gr.Dataframe(
            headers=ENTRY_TABLE_HEADERS,
            value=entries_table(workspace),
            interactive=False,
            label="Processed Entries",
        )
        entry_selection = gr.CheckboxGroup(label="Select entries", choices=entry_choices(workspace), value=[])
        with gr.Row():
            dataset_name = gr.Textbox(label="Dataset Name (optional)", placeholder="Dataset from N files")
            merge_btn = gr.Button("Merge Selected", variant="primary")
            delete_entries_btn = gr.Button("Delete Selected")
        entries_status = gr.Textbox(label="Status", interactive=False)

        gr.Markdown("### Inspect entry")
        entry_picker = gr.Dropdown(label="Entry", choices=entry_choices(workspace), interactive=True)
        entry_summary = gr.Textbox(label="Summary", interactive=False)
        with gr.Row():
            entry_json = gr.JSON(label="Canonical JSON")
            entry_fields = gr.JSON(label="Field Tree")
        analyze_btn = gr.Button("Analyze Structure")
        entry_analysis = gr.JSON(label="Analysis")

    with gr.Tab("Datasets"):
        dataset_picker = gr.Dropdown(label="Dataset", choices=dataset_choices(workspace), interactive=True)
        dataset_summary = gr.Textbox(label="Summary", interactive=False)
        schema_view = gr.Dataframe(headers=SCHEMA_TABLE_HEADERS, interactive=False, label="Schema")
        dataset_preview = gr.JSON(label="Preview (first 5 records)")
        with gr.Row():
            export_format = gr.Radio(choices=list_export_formats(), value="json", label="Export Format")
            export_btn = gr.Button("Export Dataset", variant="primary")
            delete_dataset_btn = gr.Button("Delete Dataset")
        download_output = gr.File(label="Download Result")
        datasets_status = gr.Textbox(label="Status", interactive=False)

        gr.Markdown("### Danger zone")
        reset_btn = gr.Button("Reset All Data", variant="stop")

    option_inputs = [auto_format, detect_schemas, flatten_nested, max_depth, trim_long_values, max_value_length, preserve_arrays]
    apply_options_btn.click(fn=partial(update_options_handler, workspace), inputs=option_inputs, outputs=[options_status])

    process_btn.click(
        fn=partial(process_text_handler, workspace),
        inputs=[json_input],
        outputs=[json_input, input_status, entries_view, entry_selection, entry_picker],
    )

    file_input.upload(
        fn=partial(upload_files_handler, workspace),
        inputs=[file_input],
        outputs=[input_status, entries_view, entry_selection, entry_picker, queue_view],
    )

    clear_queue_btn.click(fn=partial(clear_queue_handler, workspace), outputs=[input_status, queue_view])

    merge_btn.click(
        fn=partial(merge_entries_handler, workspace),
        inputs=[entry_selection, dataset_name],
        outputs=[entries_status, dataset_picker, dataset_preview, schema_view],
    )

    delete_entries_btn.click(
        fn=partial(delete_entries_handler, workspace),
        inputs=[entry_selection],
        outputs=[entries_status, entries_view, entry_selection, entry_picker],
    )

    entry_picker.change(
        fn=partial(entry_detail_handler, workspace),
        inputs=[entry_picker],
        outputs=[entry_json, entry_fields, entry_summary],
    )

    analyze_btn.click(
        fn=partial(analyze_entry_handler, workspace),
        inputs=[entry_picker],
        outputs=[entry_analysis, entry_summary],
    )

    dataset_picker.change(
        fn=partial(dataset_detail_handler, workspace),
        inputs=[dataset_picker],
        outputs=[dataset_summary, dataset_preview, schema_view],
    )

    export_btn.click(
        fn=partial(export_dataset_handler, workspace),
        inputs=[dataset_picker, export_format],
        outputs=[download_output, datasets_status],
    )

    delete_dataset_btn.click(
        fn=partial(delete_dataset_handler, workspace),
        inputs=[dataset_picker],
        outputs=[datasets_status, dataset_picker],
    )

    reset_btn.click(
        fn=partial(reset_all_handler, workspace),
        outputs=[datasets_status, entries_view, entry_selection, entry_picker, dataset_picker],
    )

if __name__ == "__main__":
    demo.launch()
