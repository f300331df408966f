"""Telegram channel adapter.

Long-polls the Bot API through python-telegram-bot, turns each update into
a :class:`RelayMessage` for the relay pipeline, and implements the
Telegram outbound port (MarkdownV2 text, photos by URL, file URLs for
downloads).

Handlers run one update at a time, so messages from the bridged chat are
relayed in the order Telegram delivered them.
"""

from __future__ import annotations

import logging
from typing import Optional

from telegram import Message, Update
from telegram.constants import ParseMode
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from creditbridge.config import BridgeConfig
from creditbridge.engine.events import Attachment, MediaKind, Platform, RelayMessage
from creditbridge.engine.markup import split_text
from creditbridge.services.relay_service import RelayPipeline

logger = logging.getLogger("creditbridge.telegram")

TELEGRAM_MESSAGE_LIMIT = 4096

RELAYED_CONTENT = filters.TEXT | filters.PHOTO | filters.VOICE | filters.VIDEO_NOTE


def author_name(message: Message) -> str:
    """Username if the sender has one, else their display name."""
    user = message.from_user
    if user is None:
        return message.chat.title or "unknown"
    return user.username or user.full_name


def build_relay_message(message: Message) -> RelayMessage:
    """Build a RelayMessage from a Telegram message."""
    attachments: list[Attachment] = []
    if message.photo:
        # Sizes are ordered smallest → largest
        attachments.append(Attachment(kind=MediaKind.PHOTO, ref=message.photo[-1].file_id))
    if message.video_note is not None:
        attachments.append(
            Attachment(kind=MediaKind.VIDEO_NOTE, ref=message.video_note.file_id)
        )
    if message.voice is not None:
        attachments.append(
            Attachment(
                kind=MediaKind.VOICE,
                ref=message.voice.file_id,
                content_type=message.voice.mime_type,
            )
        )

    return RelayMessage(
        source=Platform.TELEGRAM,
        author_id=str(message.from_user.id) if message.from_user else "",
        author_name=author_name(message),
        channel_id=str(message.chat_id),
        text=message.text or "",
        attachments=tuple(attachments),
        message_id=str(message.message_id),
    )


class TelegramChannel:
    """Telegram half of the bridge."""

    def __init__(self, bot_token: str, cfg: BridgeConfig):
        self.bot_token = bot_token
        self.cfg = cfg
        self.app: Optional[Application] = None
        self.pipeline: Optional[RelayPipeline] = None

    def attach(self, pipeline: RelayPipeline) -> None:
        self.pipeline = pipeline

    async def start(self):
        """Authenticate and start long polling.

        Raises the library's error (e.g. ``InvalidToken``) if the bot
        can't log in — that is fatal at startup.
        """
        self.app = (
            Application.builder()
            .token(self.bot_token)
            .build()
        )

        self.app.add_handler(MessageHandler(RELAYED_CONTENT, self._handle_message))
        self.app.add_error_handler(self._handle_error)

        logger.info("Starting Telegram bot...")
        await self.app.initialize()
        await self.app.start()
        await self.app.updater.start_polling(timeout=self.cfg.poll_timeout)

        me = self.app.bot
        if self.pipeline is not None:
            self.pipeline.set_self_id(Platform.TELEGRAM, str(me.id))
        logger.info("Authorized on Telegram account %s", me.username)

    async def stop(self):
        """Stop the Telegram bot."""
        if self.app:
            if self.app.updater.running:
                await self.app.updater.stop()
            if self.app.running:
                await self.app.stop()
            await self.app.shutdown()
            logger.info("Telegram bot stopped.")

    # -------------------------------------------------------------------
    # Inbound
    # -------------------------------------------------------------------
    async def _handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        message = update.effective_message
        if message is None or self.pipeline is None:
            return
        try:
            outcome = await self.pipeline.handle(build_relay_message(message))
            logger.debug("Telegram message %s → %s", message.message_id, outcome)
        except Exception:
            logger.exception("Error relaying Telegram message %s", message.message_id)

    async def _handle_error(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        logger.error("Telegram error: %s", context.error, exc_info=context.error)

    # -------------------------------------------------------------------
    # Outbound port for the relay pipeline
    # -------------------------------------------------------------------
    def _bot(self):
        if self.app is None:
            raise RuntimeError("Telegram bot not started")
        return self.app.bot

    async def send_markdown(self, text: str) -> None:
        """Send MarkdownV2 *text*, split to Telegram's message limit."""
        bot = self._bot()
        for chunk in split_text(text, TELEGRAM_MESSAGE_LIMIT):
            await bot.send_message(
                chat_id=self.cfg.telegram_chat_id,
                text=chunk,
                parse_mode=ParseMode.MARKDOWN_V2,
            )

    async def send_photo_url(self, url: str, caption: str) -> None:
        await self._bot().send_photo(
            chat_id=self.cfg.telegram_chat_id,
            photo=url,
            caption=caption,
        )

    async def file_url(self, file_id: str) -> str:
        """Resolve *file_id* to a direct download URL."""
        tg_file = await self._bot().get_file(file_id)
        if not tg_file.file_path:
            raise RuntimeError(f"Telegram returned no file path for {file_id}")
        return tg_file.file_path
