import gradio as gr
from portfolio_admin.css.utils import style_block
from portfolio_admin.login_logic import login_form_html
from portfolio_admin.pages.common import query_param
from portfolio_admin.pages.header import SITE_TITLE, with_light_mode_head
from portfolio_admin.page_timing import timed_page_load


def _login_form(request: gr.Request):
    # Failed sign-ins come back here with ?error=...
    return login_form_html(
        redirect_to=query_param(request, "redirect_to"),
        error=query_param(request, "error"),
    )


def make_login_page() -> gr.Blocks:
    with gr.Blocks(
        title=SITE_TITLE,
        head=with_light_mode_head(style_block("login.css")),
    ) as login_page:
        form_html = gr.HTML(login_form_html())

        login_page.load(timed_page_load("/", _login_form), outputs=[form_html])

    return login_page
