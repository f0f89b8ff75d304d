import json

from utils import app_config
from utils.app_config import get_smtp_settings


def test_smtp_settings_from_env():
    settings = get_smtp_settings({
        "SMTP_HOST": "smtp.example.com",
        "SMTP_PORT": "465",
        "SMTP_USER": "user@example.com",
        "SMTP_PASS": "secret",
    })
    assert settings.host == "smtp.example.com"
    assert settings.port == 465
    assert settings.use_ssl
    assert settings.sender == "user@example.com"


def test_report_from_email_overrides_sender():
    settings = get_smtp_settings({
        "SMTP_HOST": "smtp.example.com",
        "SMTP_PORT": "587",
        "SMTP_USER": "user@example.com",
        "SMTP_PASS": "secret",
        "REPORT_FROM_EMAIL": "reports@example.com",
    })
    assert settings.sender == "reports@example.com"
    assert not settings.use_ssl


def test_incomplete_smtp_settings_give_none():
    assert get_smtp_settings({"SMTP_HOST": "smtp.example.com"}) is None
    assert get_smtp_settings({
        "SMTP_HOST": "h", "SMTP_PORT": "abc", "SMTP_USER": "u", "SMTP_PASS": "p",
    }) is None


def test_config_round_trip(tmp_path, monkeypatch):
    monkeypatch.setattr(app_config, "CONFIG_DIR", tmp_path)
    monkeypatch.setattr(app_config, "CONFIG_FILE", tmp_path / "config.json")
    assert app_config.load_config() == {}

    app_config.set_db_folder("/data/tracker")
    assert app_config.get_db_folder() == "/data/tracker"
    assert json.loads((tmp_path / "config.json").read_text())["db_folder"] == "/data/tracker"

    app_config.set_db_folder(None)
    assert app_config.get_db_folder() is None


def test_corrupt_config_is_empty(tmp_path, monkeypatch):
    bad = tmp_path / "config.json"
    bad.write_text("{not json")
    monkeypatch.setattr(app_config, "CONFIG_FILE", bad)
    assert app_config.load_config() == {}
