"""
Telegram delivery and process entrypoint built with aiogram 3.

- sends an optional "scanning started" message to the owner
- runs the scan loop forever, posting new slots to the channel
- exits with status 1 when the bot token or channel is not configured
"""

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime, timezone
from typing import Sequence

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError
from aiogram.types import LinkPreviewOptions
from aiogram.utils.token import TokenValidationError
from pydantic import ValidationError

from .client import CowinClient
from .config import Settings, get_settings
from .districts import load_locations
from .models import Location
from .monitor import ScanLoop
from .scanner import AvailabilityScanner
from .utils import setup_logging


logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """Raised when Telegram refuses or fails to take a message."""


class TelegramNotifier:
    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    async def send(self, chat_id: str, text: str) -> None:
        try:
            await self.bot.send_message(
                chat_id=chat_id,
                text=text,
                link_preview_options=LinkPreviewOptions(is_disabled=True),
            )
        except TelegramAPIError as e:
            raise DeliveryError(f"Sending to {chat_id} failed: {e}") from e


async def send_start_message(notifier: TelegramNotifier, owner_id: str) -> None:
    now = datetime.now(timezone.utc).strftime("%a, %d %b %Y %H:%M:%S %z")
    try:
        await notifier.send(owner_id, f"Vaccine scanning started at <code>{now}</code>")
    except DeliveryError as e:
        logger.warning("Failed to send start message: %s", e)


async def run(settings: Settings, locations: Sequence[Location]) -> None:
    bot = Bot(
        settings.bot.token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    notifier = TelegramNotifier(bot)
    channel_id = settings.bot.channel_id

    try:
        async with CowinClient.from_settings(settings) as client:
            if settings.bot.owner_id:
                await send_start_message(notifier, settings.bot.owner_id)
            else:
                logger.warning("No OWNER_ID set")

            loop = ScanLoop(
                locations=locations,
                scanner=AvailabilityScanner.from_config(client, settings.scan),
                deliver=lambda text: notifier.send(channel_id, text),
                max_message_bytes=settings.scan.message_max_bytes,
            )
            await loop.run_forever()
    finally:
        await bot.session.close()


def main() -> None:
    """Entry point for running the notifier."""
    try:
        settings = get_settings()
    except (ValidationError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.logging)

    if not settings.bot.token:
        logger.critical("No BOT_TOKEN set")
        sys.exit(1)
    if not settings.bot.channel_id:
        logger.critical("No CHANNEL_ID set")
        sys.exit(1)

    try:
        locations = load_locations(settings.scan.districts_file)
    except (OSError, ValueError) as e:
        logger.critical("Cannot load district table: %s", e)
        sys.exit(1)

    try:
        asyncio.run(run(settings, locations))
    except TokenValidationError as e:
        logger.critical("Invalid BOT_TOKEN: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
