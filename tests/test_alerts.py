"""Tests for alert formatting and delivery."""

from __future__ import annotations

import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

from exceptions import NotificationError
from monitoring.alerts import Notifier, SmsChannel, TelegramChannel, format_alert_message
from monitoring.check import CheckRecord


def make_record(state="down") -> CheckRecord:
    return CheckRecord(
        id="n" * 20,
        owner_ref="0412345678",
        protocol="https",
        url="example.com/status",
        method="get",
        success_codes=(200,),
        timeout_seconds=2,
        state=state,
        last_checked=1,
    )


class FakeBot:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages = []

    async def send_message(self, chat_id, text):
        if self.fail:
            raise RuntimeError("telegram unavailable")
        self.messages.append((chat_id, text))


def sms_channel(handler) -> SmsChannel:
    return SmsChannel(
        account_sid="AC123",
        auth_token="secret",
        from_phone="+15005550006",
        country_prefix="+61",
        transport=httpx.MockTransport(handler),
    )


class TestFormat:
    def test_alert_message(self):
        assert format_alert_message(make_record("down")) == (
            "Alert: Your check for GET https://example.com/status is currently down"
        )


class TestSmsChannel:
    def test_posts_to_twilio(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201, json={"sid": "SM1"})

        async def scenario():
            channel = sms_channel(handler)
            try:
                return await Notifier([channel]).send("0412345678", "hello")
            finally:
                await channel.close()

        assert asyncio.run(scenario()) is True

        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == (
            "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
        )
        assert request.headers["Authorization"].startswith("Basic ")
        form = parse_qs(request.content.decode())
        assert form == {"From": ["+15005550006"], "To": ["+610412345678"], "Body": ["hello"]}

    @pytest.mark.parametrize(
        "phone, message",
        [("12345", "hello"), ("04123456ab", "hello"), ("0412345678", ""), ("0412345678", "x" * 1601)],
    )
    def test_rejects_bad_input(self, phone, message):
        with pytest.raises(NotificationError):
            SmsChannel.validate(phone, message)

    def test_provider_error_is_swallowed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"message": "invalid To"})

        async def scenario():
            channel = sms_channel(handler)
            notifier = Notifier([channel])
            try:
                return await notifier.send("0412345678", "hello"), notifier.get_stats()
            finally:
                await channel.close()

        delivered, stats = asyncio.run(scenario())
        assert delivered is False
        assert stats["failed"] == 1

    def test_network_error_is_swallowed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        async def scenario():
            channel = sms_channel(handler)
            try:
                return await Notifier([channel]).send("0412345678", "hello")
            finally:
                await channel.close()

        assert asyncio.run(scenario()) is False


class TestNotifier:
    def test_no_channels_only_logs(self):
        assert asyncio.run(Notifier().notify(make_record())) is False

    def test_telegram_mirror(self):
        bot = FakeBot()
        notifier = Notifier([TelegramChannel(bot, chat_id=42)])
        assert asyncio.run(notifier.notify(make_record("up"))) is True
        assert bot.messages == [
            (42, "Alert: Your check for GET https://example.com/status is currently up")
        ]

    def test_one_working_channel_is_enough(self):
        good, bad = FakeBot(), FakeBot(fail=True)
        notifier = Notifier([TelegramChannel(bad, 1), TelegramChannel(good, 2)])
        assert asyncio.run(notifier.send("0412345678", "hi")) is True
        assert good.messages == [(2, "hi")]
        assert notifier.get_stats() == {"channels": ["telegram", "telegram"], "sent": 1, "failed": 1}

    def test_from_settings_without_channels(self, settings):
        assert Notifier.from_settings(settings.alerts).channels == []
