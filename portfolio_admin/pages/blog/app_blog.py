from __future__ import annotations

import gradio as gr

from portfolio_admin.page_timing import timed_page_load
from portfolio_admin.pages.blog.core_blog import (
    PAGE,
    TABLE_HEADERS,
    delete_post,
    edit_link_html,
    load_posts,
    open_delete_dialog,
    select_post,
)
from portfolio_admin.pages.header import render_header, with_light_mode_head


def _header_blog(request: gr.Request):
    return render_header(path=PAGE, request=request)


def make_blog_app() -> gr.Blocks:
    with gr.Blocks(
        title="Blog",
        head=with_light_mode_head(None),
    ) as app:
        hdr = gr.HTML()
        app.load(timed_page_load(PAGE, _header_blog), outputs=[hdr])

        posts_state = gr.State([])

        with gr.Column(elem_id="blog-shell"):
            with gr.Row():
                gr.Markdown("## Blog Posts")
                gr.HTML('<a class="pa-new-link" href="/blog-edit/">+ New Post</a>')
            status = gr.Markdown()
            posts_table = gr.Dataframe(
                headers=TABLE_HEADERS,
                value=[],
                interactive=False,
                wrap=True,
                elem_id="blog-table",
            )
            with gr.Row(equal_height=True):
                post_select = gr.Dropdown(label="Selected post", choices=[], value=None, interactive=True, scale=3)
                delete_btn = gr.Button("Delete", variant="stop")
            edit_link = gr.HTML()

        with gr.Group(
            visible=False,
            elem_classes=["modal-overlay", "blog-delete-dialog"],
        ) as delete_dialog:
            with gr.Column(elem_classes=["modal-content"]):
                gr.Markdown("Are you sure you want to delete this post?", elem_classes=["modal-text"])
                with gr.Row(elem_classes=["modal-actions"]):
                    confirm_delete_btn = gr.Button("Delete", variant="stop")
                    cancel_delete_btn = gr.Button("Cancel", variant="secondary")

        view_outputs = [posts_table, post_select, posts_state, edit_link, status]

        app.load(timed_page_load(PAGE, load_posts), outputs=view_outputs)

        posts_table.select(
            select_post,
            inputs=[posts_state],
            outputs=[post_select, edit_link],
            show_progress=False,
        )
        post_select.input(edit_link_html, inputs=[post_select], outputs=[edit_link], show_progress=False)

        delete_btn.click(open_delete_dialog, inputs=[post_select], outputs=[delete_dialog, status])
        confirm_delete_btn.click(
            lambda: gr.update(visible=False),
            None,
            [delete_dialog],
        ).then(
            fn=timed_page_load(PAGE, delete_post),
            inputs=[posts_state, post_select],
            outputs=view_outputs,
        )
        cancel_delete_btn.click(
            lambda: gr.update(visible=False),
            None,
            [delete_dialog],
        )

    return app
