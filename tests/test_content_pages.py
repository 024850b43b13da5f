from unittest.mock import MagicMock

import pytest

from portfolio_admin.api_client import ApiError
from portfolio_admin.forms import post_draft
from portfolio_admin.pages.blog import core_blog, core_blog_edit
from portfolio_admin.pages.common import format_date, newest_first, truncate
from portfolio_admin.pages.dashboard import core_dashboard
from portfolio_admin.pages.messages import core_messages


@pytest.fixture
def messages():
    return [
        {"_id": "m1", "name": "Old", "message": "first", "createdAt": "2024-01-02T10:00:00Z"},
        {"_id": "m2", "name": "New", "message": "second", "createdAt": "2024-03-05T09:30:00Z"},
        {"_id": "m3", "name": "Undated", "message": "third"},
    ]


def test_newest_first_puts_undated_last(messages):
    assert [message["_id"] for message in newest_first(messages)] == ["m2", "m1", "m3"]


def test_format_helpers():
    assert format_date("2024-03-05T09:30:00Z") == "Mar 5, 2024"
    assert format_date("not a date") == ""
    assert truncate("abcdef", 3) == "abc..."
    assert truncate("abc", 3) == "abc"


def test_dashboard_panels_fail_independently(messages):
    api = MagicMock()

    def _list(resource):
        if resource == "blog":
            raise ApiError("API error 500", status=500)
        return {"projects": [{"_id": "1"}, {"_id": "2"}], "contact": messages}[resource]

    api.list_records.side_effect = _list
    api.featured_projects.return_value = [{"_id": "1", "title": "Alpha"}]
    api.get_profile.return_value = {"techStack": [{"skill": "Python"}, {"skill": "Go"}]}

    data = core_dashboard.collect_dashboard(api)

    assert (data.projects, data.blog_posts, data.messages, data.skills) == (2, 0, 3, 2)
    assert [message["_id"] for message in data.recent_messages] == ["m2", "m1", "m3"]
    assert data.errors == ["blog posts: API error 500"]
    assert "Featured Projects (1/3)" in core_dashboard.render_featured(data.featured)


def test_messages_are_listed_newest_first(monkeypatch, messages):
    api = MagicMock()
    api.list_records.return_value = messages
    monkeypatch.setattr(core_messages, "api_for_request", lambda request: api)

    html, dropdown, state, status = core_messages.load_messages(None)

    assert [message["_id"] for message in state] == ["m2", "m1", "m3"]
    assert html.index("New") < html.index("Old")
    assert status == "3 message(s)."


def test_deleted_message_leaves_the_list(monkeypatch, messages):
    api = MagicMock()
    monkeypatch.setattr(core_messages, "api_for_request", lambda request: api)

    _, _, state, status = core_messages.delete_message(messages, "m1", None)

    assert [message["_id"] for message in state] == ["m2", "m3"]
    assert status == "✅ Message deleted."
    api.delete_record.assert_called_once_with("contact", "m1")


def test_blog_rows_show_status_and_date():
    rows = core_blog.table_rows(
        [
            {"title": "Live", "published": True, "createdAt": "2024-03-05T09:30:00Z"},
            {"title": "Wip", "published": False},
        ]
    )
    assert rows == [["Live", "Published", "Mar 5, 2024"], ["Wip", "Draft", ""]]


def test_slug_follows_the_title_only_for_new_posts():
    new_post = post_draft().load(None)
    assert core_blog_edit.suggest_slug(new_post, "Hello There", "") == "hello-there"

    existing = post_draft().load({"_id": "b1", "slug": "kept"})
    assert core_blog_edit.suggest_slug(existing, "Renamed", "kept") == {"__type__": "update"}


def test_saving_a_new_post_fills_in_the_slug(monkeypatch):
    api = MagicMock()
    api.create_record.return_value = {"_id": "b9"}
    monkeypatch.setattr(core_blog_edit, "api_for_request", lambda request: api)
    draft = post_draft().load(None)

    title_html, slug, saved_draft, status = core_blog_edit.save_post(
        draft, "My Post", "", "", "Body", ["news"], False, None
    )

    assert slug == "my-post"
    assert saved_draft.record_id == "b9"
    assert status.startswith("✅ Post created!")
    payload = api.create_record.call_args.args[1]
    assert payload["slug"] == "my-post"
    assert payload["tags"] == ["news"]
