# ---- Resolve & inject ALL secrets BEFORE importing modules that read env ----
from portfolio_admin.secrets import get_secret

import gradio as gr
from fastapi import FastAPI
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from portfolio_admin.media import router as media_router
from portfolio_admin.mount_gradio_app import mount_gradio_app
from portfolio_admin.pages.blog.app_blog import make_blog_app
from portfolio_admin.pages.blog.app_blog_edit import make_blog_edit_app
from portfolio_admin.pages.dashboard.app_dashboard import make_dashboard_app
from portfolio_admin.pages.messages.app_messages import make_messages_app
from portfolio_admin.pages.profile.app_profile import make_profile_app
from portfolio_admin.pages.projects.app_project_edit import make_project_edit_app
from portfolio_admin.pages.projects.app_projects import make_projects_app
from portfolio_admin.pages.ui_login import make_login_page

app = FastAPI()
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

app.include_router(media_router)


# --- Pages
dashboard_app    = make_dashboard_app()
projects_app     = make_projects_app()
project_edit_app = make_project_edit_app()
blog_app         = make_blog_app()
blog_edit_app    = make_blog_edit_app()
profile_app      = make_profile_app()
messages_app     = make_messages_app()
login_page       = make_login_page()

session_secret = get_secret("SESSION_SECRET", default="dev-session-secret")
mount_gradio_app(app, dashboard_app,    "/dashboard", secret_key=session_secret)
mount_gradio_app(app, projects_app,     "/projects", secret_key=session_secret)
mount_gradio_app(app, project_edit_app, "/project-edit", secret_key=session_secret)
mount_gradio_app(app, blog_app,         "/blog", secret_key=session_secret)
mount_gradio_app(app, blog_edit_app,    "/blog-edit", secret_key=session_secret)
mount_gradio_app(app, profile_app,      "/profile", secret_key=session_secret)
mount_gradio_app(app, messages_app,     "/messages", secret_key=session_secret)


gr.mount_gradio_app(app, login_page, "/")
