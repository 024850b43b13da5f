"""
Upload widget for one image field of a form draft.

Uploads are stored one file at a time through the upload provider and each
returned reference is applied to the field's CollectionReconciler, which writes
the committed collection back into the draft.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, List, Optional, Tuple

import gradio as gr

from portfolio_admin.forms import FormDraft, ImageField
from portfolio_admin.page_timing import timed_page_load
from portfolio_admin.pages.common import error, escape, ok
from portfolio_admin.reconciler import CollectionMode
from portfolio_admin.uploads import UploadError, store_image, upload_paths

logger = logging.getLogger(__name__)


@dataclass
class ImageFieldControls:
    field: ImageField
    preview: gr.HTML
    upload: gr.UploadButton
    remove_choice: gr.Dropdown
    remove_btn: gr.Button


def render_image_preview(items: List[str], mode: CollectionMode) -> str:
    if not items:
        empty = "No image yet." if mode is CollectionMode.SINGULAR else "No images yet."
        return f'<div class="pa-image-empty">{empty}</div>'
    total = len(items)
    tiles = []
    for position, reference in enumerate(items, start=1):
        caption = "" if mode is CollectionMode.SINGULAR else f"{position} of {total}"
        tiles.append(
            '<figure class="pa-image-tile" style="display:inline-block;margin:0 0.5rem 0.5rem 0;">'
            f'<img src="{escape(reference)}" alt="{escape(caption or "image")}" '
            'style="max-width:160px;max-height:120px;border-radius:6px;border:1px solid #e5e7eb;" />'
            f'<figcaption style="font-size:0.8rem;color:#6b7280;">{escape(caption)}</figcaption>'
            "</figure>"
        )
    return f'<div class="pa-image-grid">{"".join(tiles)}</div>'


def removal_choices(items: List[str]) -> List[Tuple[str, int]]:
    choices = []
    for index, reference in enumerate(items):
        name = reference.rsplit("/", 1)[-1] or reference
        choices.append((f"{index + 1}. {name}", index))
    return choices


def field_updates(draft: Optional[FormDraft], field: ImageField) -> Tuple[str, Any]:
    items = draft.reconciler(field.name).items if draft is not None else []
    return (
        render_image_preview(items, field.mode),
        gr.update(choices=removal_choices(items), value=None),
    )


def upload_into_field(draft: Optional[FormDraft], field: ImageField, files: Any):
    if draft is None:
        return (*field_updates(None, field), error("The form is still loading."))
    reconciler = draft.reconciler(field.name)
    # A record loaded while files are uploading starts a new generation
    generation = reconciler.generation
    stored = 0
    failures: List[str] = []
    for path in upload_paths(files):
        try:
            reference = store_image(path)
        except UploadError as exc:
            logger.warning("Upload rejected for field %s: %s", field.name, exc)
            failures.append(str(exc))
            continue
        reconciler.append(reference, generation=generation)
        stored += 1

    if failures:
        status = error(" ".join(failures))
    elif stored:
        status = ok("Image uploaded." if stored == 1 else f"{stored} images uploaded.")
    else:
        status = ""
    return (*field_updates(draft, field), status)


def remove_from_field(draft: Optional[FormDraft], field: ImageField, index: Any):
    if draft is None:
        return (*field_updates(None, field), error("The form is still loading."))
    if field.mode is CollectionMode.PLURAL and (index is None or index == ""):
        return (*field_updates(draft, field), "Choose an image to remove.")
    draft.reconciler(field.name).remove_at(int(index or 0))
    return (*field_updates(draft, field), "")


def build_image_field(label: str, field: ImageField) -> ImageFieldControls:
    """Lay out the widget in the current Blocks context."""
    plural = field.mode is CollectionMode.PLURAL
    with gr.Column(elem_classes=["pa-image-field"]):
        gr.Markdown(f"**{label}**")
        preview = gr.HTML(render_image_preview([], field.mode))
        with gr.Row():
            upload = gr.UploadButton(
                "Upload images" if plural else "Upload image",
                file_types=["image"],
                file_count="multiple" if plural else "single",
                variant="secondary",
                size="sm",
            )
            remove_choice = gr.Dropdown(
                label="Image to remove",
                choices=[],
                value=None,
                interactive=True,
                visible=plural,
                scale=2,
            )
            remove_btn = gr.Button("Remove selected" if plural else "Remove", variant="stop", size="sm")
    return ImageFieldControls(field, preview, upload, remove_choice, remove_btn)


def wire_image_field(controls: ImageFieldControls, draft_state: gr.State, status: gr.Markdown, page: str) -> None:
    field = controls.field

    def _upload(draft: Optional[FormDraft], files: Any):
        return upload_into_field(draft, field, files)

    def _remove(draft: Optional[FormDraft], index: Any):
        return remove_from_field(draft, field, index)

    controls.upload.upload(
        timed_page_load(page, _upload, label=f"upload_{field.name}"),
        inputs=[draft_state, controls.upload],
        outputs=[controls.preview, controls.remove_choice, status],
        show_progress="minimal",
    )
    controls.remove_btn.click(
        timed_page_load(page, _remove, label=f"remove_{field.name}"),
        inputs=[draft_state, controls.remove_choice],
        outputs=[controls.preview, controls.remove_choice, status],
        show_progress=False,
    )
