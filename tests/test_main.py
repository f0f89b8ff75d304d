import io
from datetime import datetime

import pytest
from openpyxl import load_workbook

import main
from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from services.scheduler import Scheduler
from utils import app_config


@pytest.fixture(autouse=True)
def no_smtp(monkeypatch):
    for key in ("SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASS", "REPORT_FROM_EMAIL"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(main, "get_smtp_settings", lambda: None)


def test_import_then_export(tmp_path, capsys):
    csv_path = tmp_path / "statement.csv"
    csv_path.write_text(
        "Date,Description,Amount\n"
        "2024-03-07,TESCO,-45.30\n"
        "2024-03-25,SALARY,2000\n",
        encoding="utf-8",
    )
    folder = str(tmp_path / "data")

    assert main.main(["--db-folder", folder, "import-csv", str(csv_path)]) == 0
    assert "Imported 2 transaction(s)" in capsys.readouterr().out

    assert main.main(["--db-folder", folder, "import-csv", str(csv_path)]) == 0
    assert "2 duplicate(s) skipped" in capsys.readouterr().out

    output = tmp_path / "march.xlsx"
    assert main.main([
        "--db-folder", folder, "export-report", "--format", "excel",
        "--start", "2024-03-01", "--end", "2024-03-31", "--output", str(output),
    ]) == 0
    wb = load_workbook(io.BytesIO(output.read_bytes()))
    assert wb["Expenses"]["B2"].value == "Tesco"


def test_fire_recurring_with_explicit_today(tmp_path, capsys):
    folder = str(tmp_path / "data")
    db = DatabaseManager.open(folder)
    RecurringDAO(db).create("expense", "Rent", "Utilities", 900.0, "monthly", "2024-03-01")
    db.close()

    assert main.main(["--db-folder", folder, "fire-recurring", "--today", "2024-03-01"]) == 0
    assert "Fired 1 recurring transaction(s), 0 failed." in capsys.readouterr().out


def test_send_reports_without_mailer_skips(tmp_path, capsys):
    folder = str(tmp_path / "data")
    db = DatabaseManager.open(folder)
    app = main.build_app(db)
    schedule = app.schedules.create("me@example.com", "pdf", "weekly", next_send_date="2024-03-11")
    db.close()

    assert main.main(["--db-folder", folder, "send-reports", "--today", "2024-03-11"]) == 0
    assert f"Schedule {schedule.id}: skipped no mailer configured" in capsys.readouterr().out


def test_build_scheduler_registers_daily_jobs(tmp_path):
    db = DatabaseManager.open(str(tmp_path))
    app = main.build_app(db)
    app.schedules.create("me@example.com", "pdf", "monthly", next_send_date="2024-03-15")

    scheduler = main.build_scheduler(app, datetime(2024, 3, 1, 0, 0))

    assert isinstance(scheduler, Scheduler)
    fires = {job.name: job.next_fire for job in scheduler.jobs()}
    assert fires["recurring-transactions"] == datetime(2024, 3, 1, 3, 5)
    assert fires["report-sweep"] == datetime(2024, 3, 1, 6, 15)
    assert len(fires) == 3
    db.close()


def test_invalid_value_returns_error_code(tmp_path, capsys):
    folder = str(tmp_path / "data")
    assert main.main(["--db-folder", folder, "reconcile", "--month", "March"]) == 2
    assert "Invalid month" in capsys.readouterr().err


def test_config_command_sets_and_clears_db_folder(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(app_config, "CONFIG_DIR", tmp_path / "cfg")
    monkeypatch.setattr(app_config, "CONFIG_FILE", tmp_path / "cfg" / "config.json")
    folder = str(tmp_path / "data")
    target = str(tmp_path / "elsewhere")

    assert main.main(["--db-folder", folder, "config", "--set-db-folder", target]) == 0
    assert app_config.get_db_folder() == target
    capsys.readouterr()

    assert main.main(["--db-folder", folder, "config"]) == 0
    assert f"Database folder: {target}" in capsys.readouterr().out

    assert main.main(["--db-folder", folder, "config", "--clear-db-folder"]) == 0
    assert app_config.get_db_folder() is None


def test_setting_command_reads_and_writes(tmp_path, capsys):
    folder = str(tmp_path / "data")

    assert main.main(["--db-folder", folder, "setting", "report_send_time", "07:45"]) == 0
    capsys.readouterr()
    assert main.main(["--db-folder", folder, "setting", "report_send_time"]) == 0
    assert "report_send_time = 07:45" in capsys.readouterr().out

    assert main.main(["--db-folder", folder, "setting", "report_send_time", "soon"]) == 2
    assert "must be HH:MM" in capsys.readouterr().err
    assert main.main(["--db-folder", folder, "setting", "no_such_key"]) == 1
