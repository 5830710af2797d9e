"""
============================================================================
UPTIME WORKERS - NOTIFIER
============================================================================
Delivers state-change alerts to check owners.

Design
------
``Notifier`` fans one message out to every configured channel:

    SmsChannel       ← Twilio Messages REST endpoint over httpx
    TelegramChannel  ← operator chat mirror via aiogram's Bot

Delivery is best effort.  A channel failure is logged and swallowed,
nothing is retried, and ``send`` only reports whether at least one
channel delivered.  With no channel configured the alert is logged and
``send`` returns False.
============================================================================
"""

from typing import List, Optional

import httpx
from aiogram import Bot

from config.constants import Limits, MessageTemplates, TWILIO_MESSAGES_URL
from config.settings import AlertSettings, get_settings
from exceptions import NotificationDeliveryError, NotificationError
from monitoring.check import CheckRecord
from utils.logger import get_logger


logger = get_logger("Notifier")


def format_alert_message(record: CheckRecord) -> str:
    return MessageTemplates.ALERT.format(
        method=record.method.upper(),
        protocol=record.protocol,
        url=record.url,
        state=record.state,
    )


# ============================================================================
# CHANNELS
# ============================================================================

class SmsChannel:
    """
    SMS through Twilio's REST API.

    The destination is a 10 digit local number; the configured country
    prefix is prepended to build the ``To`` number.
    """

    name = "sms"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_phone: str,
        country_prefix: str = "+61",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid
        self.from_phone = from_phone
        self.country_prefix = country_prefix
        self._url = TWILIO_MESSAGES_URL.format(account_sid=account_sid)
        self._client = httpx.AsyncClient(
            auth=(account_sid, auth_token),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: AlertSettings) -> "SmsChannel":
        return cls(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token.get_secret_value(),
            from_phone=settings.twilio_from_phone,
            country_prefix=settings.sms_country_prefix,
            timeout=settings.sms_timeout,
        )

    @staticmethod
    def validate(destination: str, message: str) -> None:
        """
        Raises:
            NotificationError: If the phone number or the message is unusable
        """
        phone = destination.strip() if isinstance(destination, str) else ""
        if len(phone) != Limits.PHONE_LENGTH or not phone.isdigit():
            raise NotificationError(
                f"Phone number must be {Limits.PHONE_LENGTH} digits",
                channel=SmsChannel.name,
            )
        if not isinstance(message, str) or not 0 < len(message.strip()) <= Limits.SMS_MAX_LENGTH:
            raise NotificationError(
                f"Message must be between 1 and {Limits.SMS_MAX_LENGTH} characters",
                channel=SmsChannel.name,
            )

    async def deliver(self, destination: str, message: str) -> None:
        self.validate(destination, message)

        payload = {
            "From": self.from_phone,
            "To": f"{self.country_prefix}{destination.strip()}",
            "Body": message.strip(),
        }
        try:
            response = await self._client.post(self._url, data=payload)
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(
                f"Twilio request failed: {e}",
                channel=self.name,
                cause=e,
            ) from e

        if response.status_code not in (200, 201):
            raise NotificationDeliveryError(
                f"Twilio returned status {response.status_code}",
                channel=self.name,
                status_code=response.status_code,
            )

    async def close(self) -> None:
        await self._client.aclose()


class TelegramChannel:
    """
    Mirrors every alert to one operator chat.  Owners are identified by
    phone number, so the destination is not used for routing.
    """

    name = "telegram"

    def __init__(self, bot: Bot, chat_id: int):
        self.bot = bot
        self.chat_id = chat_id

    @classmethod
    def from_settings(cls, settings: AlertSettings) -> "TelegramChannel":
        bot = Bot(token=settings.telegram_bot_token.get_secret_value())
        return cls(bot=bot, chat_id=settings.telegram_chat_id)

    async def deliver(self, destination: str, message: str) -> None:
        await self.bot.send_message(chat_id=self.chat_id, text=message)

    async def close(self) -> None:
        await self.bot.session.close()


# ============================================================================
# NOTIFIER
# ============================================================================

class Notifier:
    """
    Best-effort alert fan-out.

    Parameters
    ----------
    channels : list | None
        Objects exposing ``name``, ``async deliver(destination, message)``
        and ``async close()``.  Empty means log-only.
    """

    def __init__(self, channels: Optional[List] = None):
        self.channels = list(channels or [])
        self._sent = 0
        self._failed = 0

    @classmethod
    def from_settings(cls, settings: Optional[AlertSettings] = None) -> "Notifier":
        settings = settings or get_settings().alerts
        channels = []
        if settings.sms_enabled:
            channels.append(SmsChannel.from_settings(settings))
        if settings.telegram_enabled:
            channels.append(TelegramChannel.from_settings(settings))

        logger.info(
            f"[Notifier] Channels: {', '.join(c.name for c in channels) or 'none (log only)'}"
        )
        return cls(channels)

    # ------------------------------------------------------------------
    # PUBLIC API
    # ------------------------------------------------------------------

    async def notify(self, record: CheckRecord) -> bool:
        """Alert the owner of *record* about its current state."""
        message = format_alert_message(record)
        logger.info(f"[Notifier] {message} (check {record.id}, owner {record.owner_ref})")
        return await self.send(record.owner_ref, message)

    async def send(self, destination: str, message: str) -> bool:
        """
        Deliver *message* through every channel.

        Returns:
            True if at least one channel delivered
        """
        if not self.channels:
            logger.info(f"[Notifier] No channel configured, alert to {destination} skipped")
            return False

        delivered = False
        for channel in self.channels:
            try:
                await channel.deliver(destination, message)
            except NotificationError as e:
                self._failed += 1
                logger.error(f"[Notifier] {channel.name} delivery to {destination} failed: {e.log_format()}")
            except Exception as e:
                self._failed += 1
                logger.error(f"[Notifier] {channel.name} delivery to {destination} failed: {e}")
            else:
                self._sent += 1
                delivered = True
                logger.info(f"[Notifier] Alert sent to {destination} via {channel.name}")

        return delivered

    async def close(self) -> None:
        for channel in self.channels:
            try:
                await channel.close()
            except Exception as e:
                logger.error(f"[Notifier] Error closing {channel.name}: {e}")

    def get_stats(self) -> dict:
        """Return delivery counters for diagnostics."""
        return {
            "channels": [c.name for c in self.channels],
            "sent": self._sent,
            "failed": self._failed,
        }
