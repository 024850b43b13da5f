from __future__ import annotations

import gradio as gr

from portfolio_admin.page_timing import timed_page_load
from portfolio_admin.pages.blog.core_blog_edit import (
    COVER_FIELD,
    PAGE,
    load_post_form,
    save_post,
    suggest_slug,
)
from portfolio_admin.pages.header import render_header, with_light_mode_head
from portfolio_admin.pages.image_field import build_image_field, wire_image_field


def _header_blog_edit(request: gr.Request):
    return render_header(path=PAGE, request=request)


def make_blog_edit_app() -> gr.Blocks:
    with gr.Blocks(
        title="Edit Blog Post",
        head=with_light_mode_head(None),
    ) as app:
        hdr = gr.HTML()
        app.load(timed_page_load(PAGE, _header_blog_edit), outputs=[hdr])

        draft_state = gr.State(None)

        with gr.Column(elem_id="blog-edit-shell"):
            with gr.Row():
                title_html = gr.HTML("<h2>Create New Blog Post</h2>")
                gr.HTML('<a href="/blog/">Back to Blog</a>')
            status = gr.Markdown()

            title = gr.Textbox(label="Title *")
            slug = gr.Textbox(label="Slug", info="Used in the post URL. Generated from the title when left empty.")
            excerpt = gr.Textbox(label="Excerpt", lines=2)
            content = gr.Textbox(label="Full Content *", lines=14)
            cover = build_image_field("Featured Image", COVER_FIELD)
            tags = gr.Dropdown(
                label="Tags",
                info="Type a tag and press Enter to add it.",
                choices=[],
                value=[],
                multiselect=True,
                allow_custom_value=True,
                interactive=True,
            )
            published = gr.Checkbox(label="Publish immediately", value=False)
            save_btn = gr.Button("Save Post", variant="primary")

        app.load(
            timed_page_load(PAGE, load_post_form),
            outputs=[
                title_html,
                title,
                slug,
                excerpt,
                content,
                cover.preview,
                cover.remove_choice,
                tags,
                published,
                draft_state,
                status,
            ],
        )

        wire_image_field(cover, draft_state, status, PAGE)

        title.input(
            suggest_slug,
            inputs=[draft_state, title, slug],
            outputs=[slug],
            show_progress=False,
        )

        save_btn.click(
            timed_page_load(PAGE, save_post),
            inputs=[draft_state, title, slug, excerpt, content, tags, published],
            outputs=[title_html, slug, draft_state, status],
        )

    return app
