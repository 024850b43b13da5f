from __future__ import annotations

import gradio as gr

from portfolio_admin.page_timing import timed_page_load
from portfolio_admin.pages.dashboard.core_dashboard import PAGE, load_dashboard
from portfolio_admin.pages.header import render_header, with_light_mode_head


def _header_dashboard(request: gr.Request):
    return render_header(path=PAGE, request=request)


def make_dashboard_app() -> gr.Blocks:
    with gr.Blocks(
        title="Dashboard",
        head=with_light_mode_head(None),
    ) as app:
        hdr = gr.HTML()
        app.load(timed_page_load(PAGE, _header_dashboard), outputs=[hdr])

        with gr.Column(elem_id="dashboard-shell"):
            gr.Markdown("## Dashboard")
            status = gr.Markdown()
            stats_html = gr.HTML()
            with gr.Row():
                featured_html = gr.HTML()
                messages_html = gr.HTML()

        app.load(
            timed_page_load(PAGE, load_dashboard),
            outputs=[stats_html, featured_html, messages_html, status],
        )

    return app
