import os

import pytest

from portfolio_admin import secrets
from portfolio_admin.secrets import get_int_secret, get_secret, setup_secrets

RESOURCE = "projects/demo/secrets/SESSION_SECRET/versions/latest"


@pytest.fixture
def secret_manager(monkeypatch):
    calls = []

    def _fake_get(resource):
        calls.append(resource)
        return "from-secret-manager"

    monkeypatch.setattr(secrets, "_sm_get", _fake_get)
    monkeypatch.delenv("SESSION_SECRET", raising=False)
    monkeypatch.delenv("SESSION_SECRET_RESOURCE", raising=False)
    return calls


def test_environment_wins(monkeypatch, secret_manager):
    monkeypatch.setenv("SESSION_SECRET", "from-env")
    monkeypatch.setenv("SESSION_SECRET_RESOURCE", RESOURCE)
    assert get_secret("SESSION_SECRET", default="fallback") == "from-env"
    assert secret_manager == []


def test_empty_environment_value_still_wins(monkeypatch, secret_manager):
    monkeypatch.setenv("SESSION_SECRET", "")
    assert get_secret("SESSION_SECRET", default="fallback") == ""


def test_resource_is_read_from_secret_manager(monkeypatch, secret_manager):
    monkeypatch.setenv("SESSION_SECRET_RESOURCE", RESOURCE)
    assert get_secret("SESSION_SECRET", default="fallback") == "from-secret-manager"
    assert secret_manager == [RESOURCE]


def test_default_then_error(secret_manager):
    assert get_secret("SESSION_SECRET", default="fallback") == "fallback"
    with pytest.raises(RuntimeError, match="SESSION_SECRET_RESOURCE"):
        get_secret("SESSION_SECRET")
    assert secret_manager == []


def test_int_secret_falls_back_on_garbage(monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_BYTES", " 2048 ")
    assert get_int_secret("MAX_UPLOAD_BYTES", 10) == 2048
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "lots")
    assert get_int_secret("MAX_UPLOAD_BYTES", 10) == 10


def test_setup_secrets_materializes_payloads(monkeypatch, tmp_path):
    monkeypatch.setattr(secrets, "_SECRETS_DIR", tmp_path)
    monkeypatch.setenv("ENV_FILE", "PORTFOLIO_API_URL=http://api.test/api\n")
    monkeypatch.delenv("SERVICE_ACCOUNT_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)

    written = setup_secrets("dev")

    assert written == {"ENV_FILE": tmp_path / "env.dev"}
    assert (tmp_path / "env.dev").read_text() == "PORTFOLIO_API_URL=http://api.test/api\n"


def test_setup_secrets_points_google_clients_at_the_key(monkeypatch, tmp_path):
    monkeypatch.setattr(secrets, "_SECRETS_DIR", tmp_path)
    monkeypatch.delenv("ENV_FILE", raising=False)
    monkeypatch.setenv("SERVICE_ACCOUNT_KEY", '{"type": "service_account"}')
    monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "placeholder")
    (tmp_path / "portfolio-admin-prod-sa.json").write_text("existing")

    setup_secrets("prod")

    key_path = tmp_path / "portfolio-admin-prod-sa.json"
    assert key_path.read_text() == "existing"
    assert os.environ["GOOGLE_APPLICATION_CREDENTIALS"] == str(key_path)
