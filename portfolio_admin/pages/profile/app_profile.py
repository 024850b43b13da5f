from __future__ import annotations

import gradio as gr

from portfolio_admin.forms import DEFAULT_SKILL_PERCENTAGE
from portfolio_admin.page_timing import timed_page_load
from portfolio_admin.pages.header import render_header, with_light_mode_head
from portfolio_admin.pages.image_field import build_image_field, wire_image_field
from portfolio_admin.pages.profile.core_profile import (
    HERO_FIELD,
    PAGE,
    SKILL_HEADERS,
    add_skill,
    load_profile_form,
    remove_skill,
    save_profile,
)


def _header_profile(request: gr.Request):
    return render_header(path=PAGE, request=request)


def make_profile_app() -> gr.Blocks:
    with gr.Blocks(
        title="Profile & Tech Stack",
        head=with_light_mode_head(None),
    ) as app:
        hdr = gr.HTML()
        app.load(timed_page_load(PAGE, _header_profile), outputs=[hdr])

        draft_state = gr.State(None)

        with gr.Column(elem_id="profile-shell"):
            gr.Markdown("## Profile & Tech Stack")
            status = gr.Markdown()

            hero = build_image_field("Hero Image", HERO_FIELD)

            gr.Markdown("### Profile Information")
            with gr.Row():
                name = gr.Textbox(label="Name")
                title = gr.Textbox(label="Title")
            bio = gr.Textbox(label="Bio", lines=4)
            email = gr.Textbox(label="Email")

            gr.Markdown("### Achievements")
            with gr.Row():
                projects_completed = gr.Number(label="Projects Completed", value=0, precision=0)
                happy_clients = gr.Number(label="Happy Clients", value=0, precision=0)
                years_experience = gr.Number(label="Years Experience", value=0, precision=0)

            save_btn = gr.Button("Save Profile", variant="primary")

            gr.Markdown("### Tech Stack")
            with gr.Row(equal_height=True):
                new_skill = gr.Textbox(label="Skill", placeholder="React, Python, Figma…", scale=3)
                new_percentage = gr.Slider(
                    label="Percentage",
                    minimum=0,
                    maximum=100,
                    step=1,
                    value=DEFAULT_SKILL_PERCENTAGE,
                    scale=2,
                )
                add_skill_btn = gr.Button("Add Skill", variant="secondary")
            skills_table = gr.Dataframe(headers=SKILL_HEADERS, value=[], interactive=False)
            with gr.Row(equal_height=True):
                skill_choice = gr.Dropdown(label="Skill to remove", choices=[], value=None, interactive=True, scale=3)
                remove_skill_btn = gr.Button("Remove", variant="stop")

        app.load(
            timed_page_load(PAGE, load_profile_form),
            outputs=[
                hero.preview,
                hero.remove_choice,
                name,
                title,
                bio,
                email,
                projects_completed,
                happy_clients,
                years_experience,
                skills_table,
                skill_choice,
                draft_state,
                status,
            ],
        )

        wire_image_field(hero, draft_state, status, PAGE)

        add_skill_btn.click(
            add_skill,
            inputs=[draft_state, new_skill, new_percentage],
            outputs=[skills_table, skill_choice, new_skill, new_percentage, status],
            show_progress=False,
        )
        remove_skill_btn.click(
            remove_skill,
            inputs=[draft_state, skill_choice],
            outputs=[skills_table, skill_choice, status],
            show_progress=False,
        )

        save_btn.click(
            timed_page_load(PAGE, save_profile),
            inputs=[
                draft_state,
                name,
                title,
                bio,
                email,
                projects_completed,
                happy_clients,
                years_experience,
            ],
            outputs=[status],
        )

    return app
