"""Pre-DB bootstrap configuration. Zero imports from the rest of the app.

Stores user preferences that must be known before opening the DB (db_folder,
log_level). Config lives in ~/.expense_tracker/config.json. Mail credentials
are read from the environment (optionally a .env file) so they never land in
the config file.
"""
import json
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

CONFIG_DIR = Path.home() / ".expense_tracker"
CONFIG_FILE = CONFIG_DIR / "config.json"


@dataclass
class SmtpSettings:
    host: str
    port: int
    user: str
    password: str
    sender: str

    @property
    def use_ssl(self) -> bool:
        return self.port == 465


def load_config() -> dict:
    """Returns {} on missing or corrupt file; never raises."""
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            return json.load(f)
    except Exception:
        return {}


def save_config(config: dict) -> None:
    """Creates ~/.expense_tracker/ if needed; atomic write via .tmp + os.replace()."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    tmp = CONFIG_FILE.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, CONFIG_FILE)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def get_db_folder() -> str | None:
    """Return config["db_folder"] or None if not set."""
    return load_config().get("db_folder")


def set_db_folder(path: str | None) -> None:
    """Update db_folder in config and save."""
    config = load_config()
    if path is None:
        config.pop("db_folder", None)
    else:
        config["db_folder"] = path
    save_config(config)


def get_log_level() -> str:
    return str(load_config().get("log_level") or os.environ.get("LOG_LEVEL") or "INFO").upper()


def get_smtp_settings(env: dict | None = None) -> SmtpSettings | None:
    """Build SMTP settings from the environment, or None when incomplete."""
    if env is None:
        load_dotenv()
        env = os.environ
    host = env.get("SMTP_HOST")
    port = env.get("SMTP_PORT")
    user = env.get("SMTP_USER")
    password = env.get("SMTP_PASS")
    if not (host and port and user and password):
        return None
    try:
        port_num = int(port)
    except ValueError:
        return None
    sender = env.get("REPORT_FROM_EMAIL") or user or "reports@tracker"
    return SmtpSettings(host=host, port=port_num, user=user, password=password, sender=sender)
