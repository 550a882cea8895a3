"""Tests for settings resolution and the user .env writer."""

from __future__ import annotations

import sys

import pytest

from core.config import DEFAULT_CLOUD_LOGIN_URL, AppSettings, get_user_env_file, write_user_env_vars
from core.domain.policy import DuplicatePolicy


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    settings = AppSettings(_env_file=None)

    assert settings.batch_size == 1000
    assert settings.token_validity_hours == 71
    assert settings.cloud_login_url == DEFAULT_CLOUD_LOGIN_URL
    assert settings.duplicate_info_policy is DuplicatePolicy.LAST


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("FRAPPE_DOCTYPES_SITE_URL", "https://erp.example.com")
    monkeypatch.setenv("FRAPPE_DOCTYPES_BATCH_SIZE", "250")
    monkeypatch.setenv("FRAPPE_DOCTYPES_DUPLICATE_INFO_POLICY", "error")

    settings = AppSettings(_env_file=None)

    assert settings.site_url == "https://erp.example.com"
    assert settings.batch_size == 250
    assert settings.duplicate_info_policy is DuplicatePolicy.ERROR


def test_project_env_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("FRAPPE_DOCTYPES_API_TOKEN=key:secret\n", encoding="utf-8")

    assert AppSettings(_env_file=".env").api_token == "key:secret"


@pytest.mark.skipif(sys.platform in ("win32", "darwin"), reason="XDG layout only")
def test_write_user_env_vars_merges(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    write_user_env_vars({"FRAPPE_DOCTYPES_SITE_URL": "https://a.example.com"})
    path = write_user_env_vars({"FRAPPE_DOCTYPES_API_TOKEN": "k:s", "FRAPPE_DOCTYPES_SITE_URL": None})

    assert path == get_user_env_file() == tmp_path / "frappe-doctypes" / ".env"
    text = path.read_text(encoding="utf-8")
    assert "FRAPPE_DOCTYPES_SITE_URL=https://a.example.com" in text
    assert "FRAPPE_DOCTYPES_API_TOKEN=k:s" in text
