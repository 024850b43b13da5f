from __future__ import annotations

import gradio as gr

from portfolio_admin.page_timing import timed_page_load
from portfolio_admin.pages.header import render_header, with_light_mode_head
from portfolio_admin.pages.projects.core_projects import (
    PAGE,
    TABLE_HEADERS,
    delete_project,
    edit_link_html,
    load_projects,
    open_delete_dialog,
    select_project,
    toggle_featured,
    toggle_pinned,
)


def _header_projects(request: gr.Request):
    return render_header(path=PAGE, request=request)


def make_projects_app() -> gr.Blocks:
    with gr.Blocks(
        title="Projects",
        head=with_light_mode_head(None),
    ) as app:
        hdr = gr.HTML()
        app.load(timed_page_load(PAGE, _header_projects), outputs=[hdr])

        projects_state = gr.State([])

        with gr.Column(elem_id="projects-shell"):
            with gr.Row():
                gr.Markdown("## Projects")
                gr.HTML('<a class="pa-new-link" href="/project-edit/">+ New Project</a>')
            status = gr.Markdown()
            featured_html = gr.HTML()

            gr.Markdown("### All Projects")
            projects_table = gr.Dataframe(
                headers=TABLE_HEADERS,
                value=[],
                interactive=False,
                wrap=True,
                elem_id="projects-table",
            )
            with gr.Row(equal_height=True):
                project_select = gr.Dropdown(
                    label="Selected project",
                    choices=[],
                    value=None,
                    interactive=True,
                    scale=3,
                )
                featured_btn = gr.Button("★ Toggle featured", variant="secondary")
                pinned_btn = gr.Button("📌 Toggle pinned", variant="secondary")
                delete_btn = gr.Button("Delete", variant="stop")
            edit_link = gr.HTML()

        with gr.Group(
            visible=False,
            elem_classes=["modal-overlay", "projects-delete-dialog"],
        ) as delete_dialog:
            with gr.Column(elem_classes=["modal-content"]):
                gr.Markdown("Are you sure you want to delete this project?", elem_classes=["modal-text"])
                with gr.Row(elem_classes=["modal-actions"]):
                    confirm_delete_btn = gr.Button("Delete", variant="stop")
                    cancel_delete_btn = gr.Button("Cancel", variant="secondary")

        view_outputs = [featured_html, projects_table, project_select, projects_state, edit_link, status]

        app.load(timed_page_load(PAGE, load_projects), outputs=view_outputs)

        projects_table.select(
            select_project,
            inputs=[projects_state],
            outputs=[project_select, edit_link],
            show_progress=False,
        )
        project_select.input(
            edit_link_html,
            inputs=[project_select],
            outputs=[edit_link],
            show_progress=False,
        )

        featured_btn.click(
            timed_page_load(PAGE, toggle_featured),
            inputs=[projects_state, project_select],
            outputs=view_outputs,
            show_progress=False,
        )
        pinned_btn.click(
            timed_page_load(PAGE, toggle_pinned),
            inputs=[projects_state, project_select],
            outputs=view_outputs,
            show_progress=False,
        )

        delete_btn.click(
            open_delete_dialog,
            inputs=[project_select],
            outputs=[delete_dialog, status],
        )
        confirm_delete_btn.click(
            lambda: gr.update(visible=False),
            None,
            [delete_dialog],
        ).then(
            fn=timed_page_load(PAGE, delete_project),
            inputs=[projects_state, project_select],
            outputs=view_outputs,
        )
        cancel_delete_btn.click(
            lambda: gr.update(visible=False),
            None,
            [delete_dialog],
        )

    return app
