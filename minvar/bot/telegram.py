"""Telegram long-polling front end for the minimum-variance pipeline.

Usage:
    python main.py bot
"""

from __future__ import annotations

import time

import requests

from minvar.bot.messages import HELP_TEXT, format_error, format_result, parse_request
from minvar.config import SETTINGS, Keys
from minvar.errors import MinVarError
from minvar.pipeline import MinVariancePipeline
from minvar.utils.logger import setup_logger

logger = setup_logger("telegram")


class TelegramBot:
    """Polls getUpdates and answers each text message with an allocation."""

    def __init__(
        self,
        pipeline: MinVariancePipeline,
        token: str | None = None,
        session: requests.Session | None = None,
    ):
        cfg = SETTINGS.get("telegram", {})
        self.pipeline = pipeline
        self.token = token or Keys.TELEGRAM_TOKEN
        if not self.token:
            raise ValueError("TELEGRAM_TOKEN is not set")
        self.api_url = f"{cfg.get('api_url', 'https://api.telegram.org')}/bot{self.token}"
        self.poll_timeout = cfg.get("poll_timeout", 30)
        self.session = session or requests.Session()
        self.offset = 0

    def send_message(self, chat_id: int, text: str) -> None:
        try:
            resp = self.session.post(
                f"{self.api_url}/sendMessage",
                json={"chat_id": chat_id, "text": text},
                timeout=10,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Failed to send message to %s: %s", chat_id, e)

    def get_updates(self) -> list[dict]:
        resp = self.session.get(
            f"{self.api_url}/getUpdates",
            params={"offset": self.offset, "timeout": self.poll_timeout, "allowed_updates": '["message"]'},
            timeout=self.poll_timeout + 5,
        )
        resp.raise_for_status()
        data = resp.json()
        if not data.get("ok"):
            logger.error("getUpdates returned not ok: %s", data.get("description"))
            return []
        return data.get("result", [])

    def reply_for(self, text: str) -> str:
        """Compute the reply text for one incoming message."""
        text = text.strip()
        if text.startswith("/"):
            command = text.split()[0].split("@")[0].lower()
            if command in ("/start", "/help"):
                return "Hi! I compute the minimum-risk mix of a set of coins.\n\n" + HELP_TEXT
            return f"Unknown command {command}.\n\n{HELP_TEXT}"

        try:
            tickers, window = parse_request(text)
            result = self.pipeline.run(tickers, window)
        except MinVarError as e:
            logger.info("Request %r failed: %s", text, e)
            return format_error(e)
        return format_result(result)

    def handle_update(self, update: dict) -> None:
        message = update.get("message") or {}
        text = message.get("text")
        chat_id = (message.get("chat") or {}).get("id")
        if not text or chat_id is None:
            return
        logger.info("Message from %s: %s", chat_id, text)
        try:
            reply = self.reply_for(text)
        except Exception:
            logger.exception("Unhandled error for message %r", text)
            reply = "Something went wrong while calculating. Please try again."
        self.send_message(chat_id, reply)

    def poll_once(self) -> int:
        """Process one batch of updates; returns how many were handled."""
        updates = self.get_updates()
        for update in updates:
            self.offset = max(self.offset, update.get("update_id", 0) + 1)
            self.handle_update(update)
        return len(updates)

    def run_forever(self) -> None:
        logger.info("Telegram bot polling started")
        while True:
            try:
                self.poll_once()
            except requests.RequestException as e:
                logger.error("Polling error: %s", e)
                time.sleep(5)
