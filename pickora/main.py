#!/usr/bin/env python3
"""
Pickora application entry point.

``pickora serve`` runs the HTTP API; ``pickora draw`` picks winners from a
file (or stdin) straight from the command line.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .raffle.errors import InvalidArgumentError
from .raffle.service import RaffleService
from .raffle.share import DEFAULT_SITE_URL
from .storage.result_store import ResultStore
from .utils.config import StorageSettings, get_config_value, load_config
from .utils.logger import get_logger
from .web_server import PickoraWebServer

logger = get_logger(__name__)


class PickoraApp:
    """Wires configuration, the result store and the web server together."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config if config is not None else load_config()
        self.storage_settings = StorageSettings.from_config(self.config)
        self.store = ResultStore.from_settings(self.storage_settings)
        self.web_server = PickoraWebServer(self.config, self.store)

    def _display_config_summary(self) -> None:
        logger.info("=" * 60)
        logger.info("📋 CONFIGURATION SUMMARY")
        logger.info("=" * 60)
        logger.info(f"💾 Storage mode: {self.store.mode}")
        logger.info(f"🔗 KV backend configured: {self.storage_settings.backend_configured}")
        logger.info(f"⏱️  Result TTL: {self.storage_settings.result_ttl_seconds}s")
        logger.info(f"🌍 Site URL: {get_config_value(self.config, 'app.site_url', DEFAULT_SITE_URL)}")
        logger.info("=" * 60)

    async def start(self, host: str, port: int) -> None:
        self._display_config_summary()
        try:
            await self.web_server.start(host=host, port=port)
        finally:
            await self.stop()

    async def stop(self) -> None:
        try:
            await self.web_server.stop()
        except Exception as e:
            logger.error(f"❌ Error stopping web server: {e}")


def cmd_serve(args: argparse.Namespace) -> int:
    app = PickoraApp()
    host = args.host or get_config_value(app.config, "server.host", "0.0.0.0")
    port = int(args.port or get_config_value(app.config, "server.port", 8000))

    try:
        asyncio.run(app.start(host, port))
    except KeyboardInterrupt:
        logger.info("🛑 Pickora interrupted by user")
    return 0


def cmd_draw(args: argparse.Namespace) -> int:
    try:
        if args.file == "-":
            text = sys.stdin.read()
        else:
            text = Path(args.file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        print(f"❌ Cannot read entries from {args.file}: {exc}", file=sys.stderr)
        return 2

    config = load_config()
    store = ResultStore.from_settings(StorageSettings.from_config(config))
    site_url = get_config_value(config, "app.site_url", DEFAULT_SITE_URL)
    service = RaffleService(store, site_url=site_url, base_url=get_config_value(config, "app.base_url", site_url))

    try:
        outcome = asyncio.run(service.draw_and_persist(text, args.winners))
    except InvalidArgumentError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 2
    finally:
        store.close()

    record = outcome.record
    print("========================================")
    print("🎉 RAFFLE WINNERS")
    print("========================================")
    for position, winner in enumerate(record.winners, start=1):
        print(f"🏆 {position}. {winner}")
    print("----------------------------------------")
    print(f"Result ID : {record.id}")
    print(f"Timestamp : {record.timestamp}")
    print(f"Seed      : {record.seed}")
    if outcome.warning:
        print(f"⚠️  {outcome.warning}")
    elif store.backend_configured:
        print(f"Share link: {outcome.result_url}")
    else:
        print("ℹ️  KV not configured; no share link was created")
    print("----------------------------------------")
    print(outcome.share_text)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pickora",
        description="Fair raffle and giveaway picker.",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("serve", help="Run the HTTP API.")
    s.add_argument("--host", default=None, help="Bind address (else server.host / SERVER_HOST).")
    s.add_argument("--port", type=int, default=None, help="Port (else server.port / SERVER_PORT).")
    s.set_defaults(func=cmd_serve)

    d = sub.add_parser("draw", help="Pick winners from a list of names, one per line.")
    d.add_argument("file", nargs="?", default="-", help="Entries file, or '-' for stdin.")
    d.add_argument("-n", "--winners", type=int, default=1, help="Number of winners.")
    d.set_defaults(func=cmd_draw)

    return p


def main() -> None:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args()
    raise SystemExit(args.func(args))


if __name__ == "__main__":
    main()
