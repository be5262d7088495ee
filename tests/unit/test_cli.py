from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

import tickflow.connectors.yahoo as yahoo_pkg
from tickflow.cli import app
from tickflow.testing import ScriptedSource, ticks

_ENV_VARS = (
    "DATABASE_URL",
    "POSTGRES_PASSWORD",
    "DATAFEED_CHANNEL_SIZE",
    "APCA_API_KEY_ID",
    "APCA_API_SECRET_KEY",
    "SYMBOLS_PATH",
    "YAHOO_PROXIES",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TICKFLOW_CONFIG", str(tmp_path / "config.toml"))
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(app, "load_dotenv", lambda: None)


# ── Parser ───────────────────────────────────────────────────────────


def test_parser_alpaca_symbol_lists() -> None:
    args = app._build_parser().parse_args(
        ["alpaca", "--bars", "AAPL, MSFT", "--trades", "TSLA", "--channel-capacity", "8"]
    )
    assert args.command == "alpaca"
    assert args.bars == ["AAPL", "MSFT"]
    assert args.quotes is None
    assert args.trades == ["TSLA"]
    assert args.channel_capacity == 8
    assert args.dry_run is False


def test_parser_yahoo_flags() -> None:
    args = app._build_parser().parse_args(
        ["-v", "yahoo", "--symbols-path", "s.csv", "--delay-ms", "0", "--fail-fast", "--dry-run"]
    )
    assert args.verbose is True
    assert args.symbols_path == "s.csv"
    assert args.delay_ms == 0
    assert args.fail_fast is True
    assert args.dry_run is True


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    app.main([])
    assert "stream market data into PostgreSQL" in capsys.readouterr().out


# ── Commands ─────────────────────────────────────────────────────────


def test_config_show_masks_password(
    capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgres://u:hunter2@db:5432/ticks")
    monkeypatch.setenv("APCA_API_KEY_ID", "key")

    app.main(["config", "show"])

    out = capsys.readouterr().out
    assert "postgresql+asyncpg://u:***@db:5432/ticks" in out
    assert "hunter2" not in out
    assert "Alpaca key:" in out


def test_alpaca_without_credentials_exits() -> None:
    with pytest.raises(SystemExit) as excinfo:
        app.main(["alpaca", "--dry-run"])
    assert excinfo.value.code == 1


def test_yahoo_dry_run(monkeypatch: pytest.MonkeyPatch) -> None:
    created: dict[str, Any] = {}

    def fake_client(symbols: list[str], **kwargs: Any) -> ScriptedSource:
        created["symbols"] = symbols
        created.update(kwargs)
        return ScriptedSource([ticks(1), ticks(2)])

    monkeypatch.setattr(yahoo_pkg, "YahooClient", fake_client)

    app.main(["yahoo", "--symbols", "AAPL,MSFT", "--delay-ms", "0", "--dry-run"])

    assert created["symbols"] == ["AAPL", "MSFT"]
    assert created["request_delay_ms"] == 0
    assert created["fail_fast"] is False


def test_yahoo_missing_symbols_file_exits(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        app.main(["yahoo", "--symbols-path", str(tmp_path / "nope.csv"), "--dry-run"])
    assert excinfo.value.code == 1
