from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime
from typing import Any

from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

from tickflow.config import (
    AppConfig,
    config_path,
    load_config,
    require_alpaca_credentials,
    require_symbols_path,
)
from tickflow.core.exceptions import TickflowError
from tickflow.core.sink import MessageSink
from tickflow.core.source import MessageSource
from tickflow.pipeline.builder import TickflowBuilder

logger = logging.getLogger("tickflow.cli")

DESCRIPTION = """\
tickflow: stream market data into PostgreSQL

Each command connects one source to the PostgreSQL sink through a bounded
channel.  Settings come from ~/.config/tickflow/config.toml, a .env file
and the environment."""


# ── Pipeline helpers ────────────────────────────────────────────────


async def _run(
    source: MessageSource[Any],
    handler_factory: Callable[[], Any],
    cfg: AppConfig,
    args: argparse.Namespace,
) -> None:
    """Run *source* into PostgreSQL (or a logging sink with --dry-run)."""
    from tickflow.storage.memory import LoggingSink
    from tickflow.storage.postgres import Database

    capacity = (
        args.channel_capacity if args.channel_capacity is not None else cfg.channel_capacity
    )
    if args.dry_run:
        await _join(source, LoggingSink(), capacity)
        return

    async with Database(cfg.database_dsn, handler_factory()) as db:
        await db.init_schema()
        await _join(source, db, capacity)


async def _join(source: MessageSource[Any], sink: MessageSink[Any], capacity: int) -> None:
    feed = TickflowBuilder(source, sink).channel_capacity(capacity).build()
    logger.info(
        "Starting %s -> %s (channel capacity %d)",
        type(source).__name__,
        sink.name,
        capacity,
    )
    handles = feed.start()
    await handles.join()
    processor = feed.processor
    logger.info(
        "Pipeline finished: %d batches handled, %d failed",
        processor.batches_handled,
        processor.batches_failed,
    )


# ── Commands ────────────────────────────────────────────────────────


async def cmd_alpaca(args: argparse.Namespace) -> None:
    """Stream Alpaca bars, quotes and trades."""
    from tickflow.connectors.alpaca import AlpacaWebSocketClient
    from tickflow.storage.handlers import AlpacaMessageHandler

    cfg = load_config()
    require_alpaca_credentials(cfg)

    source = AlpacaWebSocketClient(
        cfg.alpaca_ws_url,
        cfg.alpaca_api_key,
        cfg.alpaca_api_secret,
        bars=args.bars or cfg.alpaca_bars,
        quotes=args.quotes or cfg.alpaca_quotes,
        trades=args.trades or cfg.alpaca_trades,
    )
    await _run(source, AlpacaMessageHandler, cfg, args)


async def cmd_yahoo(args: argparse.Namespace) -> None:
    """Fetch quarterly fundamentals and calendars from Yahoo Finance."""
    from tickflow.connectors.yahoo import YahooClient, load_symbols
    from tickflow.storage.handlers import YahooMessageHandler

    cfg = load_config()
    if args.symbols:
        symbols = _symbol_list(args.symbols)
    else:
        if args.symbols_path:
            cfg.symbols_path = args.symbols_path
        symbols = load_symbols(require_symbols_path(cfg))
    logger.info("Loaded %d symbols", len(symbols))

    source = YahooClient(
        symbols,
        request_delay_ms=(
            args.delay_ms if args.delay_ms is not None else cfg.yahoo_request_delay_ms
        ),
        proxies=cfg.yahoo_proxies,
        fail_fast=args.fail_fast,
    )
    await _run(source, YahooMessageHandler, cfg, args)


async def cmd_polymarket(args: argparse.Namespace) -> None:
    """Fetch every market listed by the Polymarket CLOB API."""
    from tickflow.connectors.polymarket import PolymarketClient
    from tickflow.storage.handlers import PolymarketMessageHandler

    cfg = load_config()
    source = PolymarketClient(
        request_delay_ms=(
            args.delay_ms if args.delay_ms is not None else cfg.polymarket_request_delay_ms
        ),
    )
    await _run(source, PolymarketMessageHandler, cfg, args)


async def cmd_polymarket_gamma(args: argparse.Namespace) -> None:
    """Fetch active markets from the Polymarket Gamma API."""
    from tickflow.connectors.polymarket import PolymarketGammaClient
    from tickflow.storage.handlers import PolymarketMessageHandler

    cfg = load_config()
    end_date_min = (
        args.end_date_min
        or cfg.polymarket_end_date_min
        or datetime.now(UTC).date().isoformat()
    )
    source = PolymarketGammaClient(
        end_date_min,
        request_delay_ms=(
            args.delay_ms if args.delay_ms is not None else cfg.polymarket_request_delay_ms
        ),
    )
    await _run(source, PolymarketMessageHandler, cfg, args)


async def cmd_init_db(args: argparse.Namespace) -> None:
    """Create every tickflow table."""
    from tickflow.storage.postgres import create_schema, make_engine

    cfg = load_config()
    engine = make_engine(cfg.database_dsn)
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()
    print(f"Schema ready on {cfg.database_display}")


async def cmd_config_show(args: argparse.Namespace) -> None:
    """Display current configuration."""
    cfg = load_config()

    def kv(key: str, value: object) -> None:
        print(f"  {key + ':':<28}{value}")

    print(f"Configuration ({config_path()})\n")
    kv("Database", cfg.database_display)
    kv("Channel capacity", cfg.channel_capacity)
    kv("Alpaca stream", cfg.alpaca_ws_url)
    kv("Alpaca key", "set" if cfg.alpaca_api_key else "not set")
    kv("Alpaca secret", "set" if cfg.alpaca_api_secret else "not set")
    kv("Symbols file", cfg.symbols_path or "not set")
    kv("Yahoo delay (ms)", cfg.yahoo_request_delay_ms)
    kv("Yahoo proxies", len(cfg.yahoo_proxies))
    kv("Polymarket delay (ms)", cfg.polymarket_request_delay_ms)
    kv("Polymarket end date min", cfg.polymarket_end_date_min or "today")


# ── Parser ──────────────────────────────────────────────────────────


def _symbol_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tickflow",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log per-frame and per-page details",
    )
    sub = parser.add_subparsers(dest="command", title="commands")

    run_opts = argparse.ArgumentParser(add_help=False)
    run_opts.add_argument(
        "--channel-capacity",
        type=int,
        metavar="N",
        help="Batches buffered between source and sink (default: config)",
    )
    run_opts.add_argument(
        "--dry-run",
        action="store_true",
        help="Log batches instead of writing to PostgreSQL",
    )

    p_alpaca = sub.add_parser(
        "alpaca", parents=[run_opts], help="Stream Alpaca market data"
    )
    p_alpaca.add_argument("--bars", type=_symbol_list, metavar="SYMS", help="Comma-separated")
    p_alpaca.add_argument("--quotes", type=_symbol_list, metavar="SYMS", help="Comma-separated")
    p_alpaca.add_argument("--trades", type=_symbol_list, metavar="SYMS", help="Comma-separated")

    p_yahoo = sub.add_parser(
        "yahoo", parents=[run_opts], help="Fetch Yahoo Finance fundamentals"
    )
    p_yahoo.add_argument("--symbols-path", metavar="CSV", help="Overrides SYMBOLS_PATH")
    p_yahoo.add_argument("--symbols", metavar="SYMS", help="Comma-separated, skips the CSV")
    p_yahoo.add_argument("--delay-ms", type=int, help="Delay after each request")
    p_yahoo.add_argument(
        "--fail-fast", action="store_true", help="Stop at the first failed fetch"
    )

    p_poly = sub.add_parser(
        "polymarket", parents=[run_opts], help="Fetch Polymarket CLOB markets"
    )
    p_poly.add_argument("--delay-ms", type=int, help="Delay between pages")

    p_gamma = sub.add_parser(
        "polymarket-gamma",
        parents=[run_opts],
        help="Fetch active Polymarket Gamma markets",
    )
    p_gamma.add_argument("--end-date-min", metavar="YYYY-MM-DD", help="Default: today")
    p_gamma.add_argument("--delay-ms", type=int, help="Delay between pages")

    sub.add_parser("init-db", help="Create all tables")

    p_cfg = sub.add_parser("config", help="Inspect settings")
    cfg_sub = p_cfg.add_subparsers(dest="config_command")
    cfg_sub.add_parser("show", help="Show current settings")

    return parser


# ── Dispatch ────────────────────────────────────────────────────────

_CommandHandler = Callable[[argparse.Namespace], Coroutine[Any, Any, None]]

_COMMAND_MAP: dict[str, _CommandHandler] = {
    "alpaca": cmd_alpaca,
    "yahoo": cmd_yahoo,
    "polymarket": cmd_polymarket,
    "polymarket-gamma": cmd_polymarket_gamma,
    "init-db": cmd_init_db,
}

_CONFIG_MAP: dict[str, _CommandHandler] = {
    "show": cmd_config_show,
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("yfinance").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    if args.command == "config":
        if not args.config_command:
            parser.parse_args(["config", "--help"])
            return
        handler = _CONFIG_MAP.get(args.config_command)
    else:
        handler = _COMMAND_MAP.get(args.command)

    if handler is None:
        parser.print_help()
        return

    load_dotenv()
    _configure_logging(args.verbose)

    try:
        asyncio.run(handler(args))
    except KeyboardInterrupt:
        print()
    except TickflowError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Database or I/O error: %s", exc)
        sys.exit(1)
