import pytest
import requests

from portfolio_admin.api_client import ApiError, PortfolioApi, PROJECTS, record_id

from conftest import make_response

BASE_URL = "http://api.test/api"


@pytest.fixture
def api(http_session):
    return PortfolioApi(BASE_URL, token="tok", timeout=5, session=http_session)


def test_requests_carry_the_bearer_token(api, http_session):
    http_session.request.return_value = make_response(200, [{"_id": "1"}, "junk"])

    assert api.list_records(PROJECTS) == [{"_id": "1"}]
    http_session.request.assert_called_once_with(
        "GET",
        f"{BASE_URL}/projects",
        json=None,
        headers={"Accept": "application/json", "Authorization": "Bearer tok"},
        timeout=5,
    )


def test_anonymous_client_sends_no_authorization(http_session):
    http_session.request.return_value = make_response(200, {"token": "abc"})
    api = PortfolioApi(BASE_URL, timeout=5, session=http_session)

    assert api.login("me@example.com", "secret") == "abc"
    _, kwargs = http_session.request.call_args
    assert "Authorization" not in kwargs["headers"]
    assert kwargs["json"] == {"email": "me@example.com", "password": "secret"}


def test_login_without_token_is_an_error(api, http_session):
    http_session.request.return_value = make_response(200, {"user": "me"})
    with pytest.raises(ApiError, match="token"):
        api.login("me@example.com", "secret")


def test_http_errors_carry_status_and_detail(api, http_session):
    http_session.request.return_value = make_response(404, {"message": "Project not found"})

    with pytest.raises(ApiError) as excinfo:
        api.get_record(PROJECTS, "42")

    assert excinfo.value.status == 404
    assert excinfo.value.detail == "Project not found"
    assert str(excinfo.value) == "API error 404: Project not found"


def test_error_detail_falls_back_to_text(api, http_session):
    http_session.request.return_value = make_response(500, text="upstream exploded")
    with pytest.raises(ApiError, match="upstream exploded"):
        api.update_record(PROJECTS, "1", {"featured": True})


def test_transport_failures_have_no_status(api, http_session):
    http_session.request.side_effect = requests.ConnectionError("refused")

    with pytest.raises(ApiError) as excinfo:
        api.list_records(PROJECTS)

    assert excinfo.value.status is None
    assert "ConnectionError" in str(excinfo.value)


def test_no_content_returns_none(api, http_session):
    http_session.request.return_value = make_response(204)
    assert api.delete_record(PROJECTS, "1") is None
    assert http_session.request.call_args.args == ("DELETE", f"{BASE_URL}/projects/1")


def test_non_json_success_is_an_error(api, http_session):
    http_session.request.return_value = make_response(200, text="<html>")
    with pytest.raises(ApiError, match="non-JSON"):
        api.get_profile()


def test_list_endpoints_must_return_lists(api, http_session):
    http_session.request.return_value = make_response(200, {"items": []})
    with pytest.raises(ApiError, match="Expected a list"):
        api.list_records(PROJECTS)


def test_ids_are_url_quoted(api, http_session):
    http_session.request.return_value = make_response(200, {"_id": "a/b"})
    api.get_record(PROJECTS, "a/b")
    assert http_session.request.call_args.args[1] == f"{BASE_URL}/projects/a%2Fb"


def test_update_sends_only_the_payload(api, http_session):
    http_session.request.return_value = make_response(200, {"_id": "1", "featured": True})
    assert api.update_record(PROJECTS, "1", {"featured": True}) == {"_id": "1", "featured": True}
    assert http_session.request.call_args.kwargs["json"] == {"featured": True}


def test_drafts_load_through_the_admin_route(api, http_session):
    http_session.request.return_value = make_response(200, {"_id": "9", "published": False})
    api.get_post_for_edit("9")
    assert http_session.request.call_args.args[1] == f"{BASE_URL}/blog/admin/9"


def test_configuration_comes_from_the_environment(monkeypatch, http_session):
    monkeypatch.setenv("PORTFOLIO_API_URL", "http://configured.test/api/")
    monkeypatch.setenv("PORTFOLIO_API_TIMEOUT", "not-a-number")
    api = PortfolioApi(session=http_session)
    assert api.base_url == "http://configured.test/api"
    assert api.timeout == 30.0


def test_record_id_accepts_both_keys():
    assert record_id({"_id": "abc"}) == "abc"
    assert record_id({"id": 12}) == "12"
    assert record_id(None) == ""
