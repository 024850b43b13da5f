from __future__ import annotations

import gradio as gr

from portfolio_admin.forms import DEFAULT_CATEGORY, PROJECT_CATEGORIES
from portfolio_admin.page_timing import timed_page_load
from portfolio_admin.pages.header import render_header, with_light_mode_head
from portfolio_admin.pages.image_field import build_image_field, wire_image_field
from portfolio_admin.pages.projects.core_project_edit import (
    IMAGES_FIELD,
    PAGE,
    THUMBNAIL_FIELD,
    load_project_form,
    save_project,
)


def _header_project_edit(request: gr.Request):
    return render_header(path=PAGE, request=request)


def make_project_edit_app() -> gr.Blocks:
    with gr.Blocks(
        title="Edit Project",
        head=with_light_mode_head(None),
    ) as app:
        hdr = gr.HTML()
        app.load(timed_page_load(PAGE, _header_project_edit), outputs=[hdr])

        draft_state = gr.State(None)

        with gr.Column(elem_id="project-edit-shell"):
            with gr.Row():
                title_html = gr.HTML("<h2>Add New Project</h2>")
                gr.HTML('<a href="/projects/">Back to Projects</a>')
            status = gr.Markdown()

            title = gr.Textbox(label="Project Title *", placeholder="My awesome project")
            description = gr.Textbox(label="Description *", lines=5)
            category = gr.Dropdown(
                label="Category",
                choices=list(PROJECT_CATEGORIES),
                value=DEFAULT_CATEGORY,
                interactive=True,
            )
            technologies = gr.Dropdown(
                label="Technologies",
                info="Type a technology and press Enter to add it.",
                choices=[],
                value=[],
                multiselect=True,
                allow_custom_value=True,
                interactive=True,
            )

            thumbnail = build_image_field("Thumbnail Image", THUMBNAIL_FIELD)
            images = build_image_field("Project Images (Multiple)", IMAGES_FIELD)

            with gr.Row():
                live_link = gr.Textbox(label="Live Link", placeholder="https://…")
                github_link = gr.Textbox(label="GitHub Link", placeholder="https://github.com/…")
            with gr.Row():
                featured = gr.Checkbox(label="Featured", value=False)
                pinned = gr.Checkbox(label="Pinned", value=False)

            save_btn = gr.Button("Save Project", variant="primary")

        app.load(
            timed_page_load(PAGE, load_project_form),
            outputs=[
                title_html,
                title,
                description,
                category,
                technologies,
                thumbnail.preview,
                thumbnail.remove_choice,
                images.preview,
                images.remove_choice,
                live_link,
                github_link,
                featured,
                pinned,
                draft_state,
                status,
            ],
        )

        wire_image_field(thumbnail, draft_state, status, PAGE)
        wire_image_field(images, draft_state, status, PAGE)

        save_btn.click(
            timed_page_load(PAGE, save_project),
            inputs=[
                draft_state,
                title,
                description,
                category,
                technologies,
                live_link,
                github_link,
                featured,
                pinned,
            ],
            outputs=[title_html, draft_state, status],
        )

    return app
