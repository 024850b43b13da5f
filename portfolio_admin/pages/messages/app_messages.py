from __future__ import annotations

import gradio as gr

from portfolio_admin.page_timing import timed_page_load
from portfolio_admin.pages.header import render_header, with_light_mode_head
from portfolio_admin.pages.messages.core_messages import (
    PAGE,
    delete_message,
    load_messages,
    open_delete_dialog,
)


def _header_messages(request: gr.Request):
    return render_header(path=PAGE, request=request)


def make_messages_app() -> gr.Blocks:
    with gr.Blocks(
        title="Contact Messages",
        head=with_light_mode_head(None),
    ) as app:
        hdr = gr.HTML()
        app.load(timed_page_load(PAGE, _header_messages), outputs=[hdr])

        messages_state = gr.State([])

        with gr.Column(elem_id="messages-shell"):
            gr.Markdown("## Contact Messages")
            status = gr.Markdown()
            with gr.Row(equal_height=True):
                message_select = gr.Dropdown(label="Selected message", choices=[], value=None, interactive=True, scale=3)
                delete_btn = gr.Button("Delete", variant="stop")
            messages_html = gr.HTML()

        with gr.Group(
            visible=False,
            elem_classes=["modal-overlay", "messages-delete-dialog"],
        ) as delete_dialog:
            with gr.Column(elem_classes=["modal-content"]):
                gr.Markdown("Delete this message?", elem_classes=["modal-text"])
                with gr.Row(elem_classes=["modal-actions"]):
                    confirm_delete_btn = gr.Button("Delete", variant="stop")
                    cancel_delete_btn = gr.Button("Cancel", variant="secondary")

        view_outputs = [messages_html, message_select, messages_state, status]

        app.load(timed_page_load(PAGE, load_messages), outputs=view_outputs)

        delete_btn.click(open_delete_dialog, inputs=[message_select], outputs=[delete_dialog, status])
        confirm_delete_btn.click(
            lambda: gr.update(visible=False),
            None,
            [delete_dialog],
        ).then(
            fn=timed_page_load(PAGE, delete_message),
            inputs=[messages_state, message_select],
            outputs=view_outputs,
        )
        cancel_delete_btn.click(
            lambda: gr.update(visible=False),
            None,
            [delete_dialog],
        )

    return app
