from __future__ import annotations

from pathlib import Path

import pytest

from app.config import (
    LISTEN_PORT,
    StartupError,
    load_rate_table,
    load_settings,
    resolve_rates_path,
)


def test_load_settings_reads_environment(tmp_path: Path) -> None:
    rates = tmp_path / "rates.json"
    settings = load_settings(
        {
            "DATABASE_URL": f"sqlite:///{tmp_path / 'users.sqlite3'}",
            "RATES_PATH": str(rates),
        }
    )

    assert settings.database_path == (tmp_path / "users.sqlite3").resolve()
    assert settings.rates_path == rates.resolve()
    assert settings.port == LISTEN_PORT == 4000


def test_load_settings_rejects_unsupported_store_url() -> None:
    with pytest.raises(StartupError):
        load_settings({"DATABASE_URL": "mysql://localhost/users"})


def test_default_rates_file_is_bundled() -> None:
    rates = load_rate_table(resolve_rates_path(None))
    assert rates["USD"] == 1.0
    assert all(isinstance(value, float) for value in rates.values())


def test_load_rate_table_accepts_yaml(tmp_path: Path) -> None:
    path = tmp_path / "rates.yaml"
    path.write_text("EUR: 1.1\nGBP: 1.3\n", encoding="utf-8")

    assert load_rate_table(path) == {"EUR": 1.1, "GBP": 1.3}


def test_missing_rate_file_is_a_startup_error(tmp_path: Path) -> None:
    with pytest.raises(StartupError):
        load_rate_table(tmp_path / "missing.json")


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[1, 2, 3]",
        '{"EUR": "lots"}',
        "",
    ],
)
def test_malformed_rate_file_is_a_startup_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "rates.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(StartupError):
        load_rate_table(path)


def test_load_settings_reads_dotenv_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Register both variables so the values loaded from .env are rolled back.
    for name in ("DATABASE_URL", "RATES_PATH"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    target = tmp_path / "fromenv.sqlite3"
    (tmp_path / ".env").write_text(f"DATABASE_URL=sqlite:///{target}\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    settings = load_settings()

    assert settings.database_path == target.resolve()


def test_process_environment_overrides_dotenv_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from_process = tmp_path / "process.sqlite3"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{from_process}")
    (tmp_path / ".env").write_text(
        f"DATABASE_URL=sqlite:///{tmp_path / 'fromenv.sqlite3'}\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)

    assert load_settings().database_path == from_process.resolve()
