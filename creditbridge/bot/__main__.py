"""
creditbridge.bot.__main__ — Entry point for ``python -m creditbridge.bot``
==========================================================================

Wiring:
1. Load .env (bot tokens).
2. Load config.yaml and the admin allow-list.
3. Load the ledger from disk (a corrupt file stops startup).
4. Start the Telegram long-poll loop.
5. Start the Discord gateway (cogs: relay, voice, periodic save).
6. On SIGINT/SIGTERM: save the ledger, stop both clients, exit.

Run with::

    python -m creditbridge.bot
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys

from dotenv import load_dotenv

from creditbridge.bot.core import BridgeBot
from creditbridge.channels.telegram import TelegramChannel
from creditbridge.config import AdminFileError, BridgeConfig, load_admins, load_config
from creditbridge.engine.ledger import ReputationLedger
from creditbridge.services.media_service import ensure_content_dir
from creditbridge.storage.store import JsonStore, StoreError, run_io

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("creditbridge")


async def save_on_shutdown(ledger: ReputationLedger) -> None:
    """Best-effort final save.  Failures are logged, never raised."""
    try:
        if await run_io(ledger.save_if_dirty):
            logger.info("Ledger saved before shutdown (%d users)", len(ledger))
        else:
            logger.info("Ledger unchanged since last save")
    except StoreError:
        logger.exception("Failed to save ledger on shutdown")


async def run_bridge(
    cfg: BridgeConfig,
    ledger: ReputationLedger,
    discord_token: str,
    telegram_token: str,
) -> None:
    """Run both clients until a termination signal or a fatal gateway error."""
    telegram = TelegramChannel(telegram_token, cfg)
    bot = BridgeBot(cfg=cfg, ledger=ledger, telegram=telegram)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_stop, sig, stop)
        except NotImplementedError:
            # Windows: Ctrl+C still arrives as KeyboardInterrupt
            pass

    gateway: asyncio.Task | None = None
    try:
        await telegram.start()

        gateway = asyncio.create_task(bot.start(discord_token), name="discord-gateway")
        stopper = asyncio.create_task(stop.wait(), name="shutdown-signal")
        done, _ = await asyncio.wait(
            {gateway, stopper}, return_when=asyncio.FIRST_COMPLETED,
        )
        stopper.cancel()
        if gateway in done:
            gateway.result()  # re-raises a login failure
    finally:
        await save_on_shutdown(ledger)
        await telegram.stop()
        if not bot.is_closed():
            await bot.close()
        if gateway is not None and not gateway.done():
            gateway.cancel()


def _request_stop(sig: signal.Signals, stop: asyncio.Event) -> None:
    logger.info("Received signal %s. Saving users before shutdown…", sig.name)
    stop.set()


def main() -> None:
    """Bootstrap and run the bridge."""

    # 1. Environment variables (secrets).
    load_dotenv()

    discord_token = os.getenv("DISCORD_TOKEN")
    telegram_token = os.getenv("TELEGRAM_TOKEN")
    missing = [
        name for name, value in (
            ("DISCORD_TOKEN", discord_token),
            ("TELEGRAM_TOKEN", telegram_token),
        )
        if not value
    ]
    if discord_token == "your-discord-bot-token-here":
        missing.append("DISCORD_TOKEN")
    if missing:
        logger.critical(
            "Missing required environment variables: %s.  "
            "Copy .env.example → .env and paste your bot tokens.",
            ", ".join(missing),
        )
        sys.exit(1)

    # 2. Configuration and admin allow-list.
    try:
        cfg = load_config(os.getenv("CREDITBRIDGE_CONFIG", "config.yaml"))
        admins = load_admins(cfg.admin_file)
    except (FileNotFoundError, KeyError, ValueError, AdminFileError) as exc:
        logger.critical("Invalid configuration: %s", exc)
        sys.exit(1)
    logger.info(
        "Config loaded — bridging Discord #%d ↔ Telegram %d",
        cfg.discord_channel_id, cfg.telegram_chat_id,
    )

    # 3. Ledger.
    ledger = ReputationLedger(JsonStore(cfg.ledger_file), admins)
    try:
        ledger.load()
    except StoreError as exc:
        logger.critical("Cannot load ledger: %s", exc)
        sys.exit(1)
    ensure_content_dir(cfg.content_dir)

    # 4–6. Run until signalled.
    logger.info("Starting bridge…")
    try:
        asyncio.run(run_bridge(cfg, ledger, discord_token, telegram_token))
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")
    except Exception:
        logger.critical("Bridge stopped on a fatal error", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
