"""Tests for configuration and the exception hierarchy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from config.settings import AlertSettings, DatabaseSettings, MonitoringSettings, Settings
from exceptions import DatabaseNotFoundError, MultipleValidationErrors, MissingFieldError


class TestSettings:
    def test_defaults(self, settings):
        assert settings.monitoring.check_interval == 60
        assert settings.monitoring.serialize_per_check is True
        assert settings.alerts.sms_country_prefix == "+61"
        assert settings.database.url.startswith("sqlite+aiosqlite:///")

    def test_timeout_bounds_must_be_ordered(self):
        with pytest.raises(ValidationError):
            MonitoringSettings(min_timeout=5, max_timeout=2)

    def test_enabled_sms_needs_credentials(self):
        with pytest.raises(ValidationError):
            AlertSettings(sms_enabled=True)

    def test_production_forces_debug_off(self, tmp_path):
        settings = Settings(
            environment="PRODUCTION",
            debug=True,
            database=DatabaseSettings(sqlite_path=tmp_path / "p.db", echo=True),
        )
        assert settings.is_production
        assert settings.debug is False
        assert settings.database.echo is False

    def test_to_dict_hides_secrets(self, settings):
        data = settings.to_dict()
        assert "password" not in data["database"]
        assert "twilio_auth_token" not in data["alerts"]
        assert "telegram_bot_token" not in data["alerts"]


class TestExceptions:
    def test_details_and_serialization(self):
        exc = DatabaseNotFoundError(collection="checks", key="abc")
        data = exc.to_dict()
        assert exc.error_code == 2003
        assert data["details"] == {"collection": "checks", "key": "abc"}

    def test_multiple_errors_collects_fields(self):
        errors = MultipleValidationErrors()
        assert not errors
        errors.add_error(MissingFieldError(field="url"))
        errors.add_error(MissingFieldError(field="method"))
        assert errors.fields == ["url", "method"]
        assert len(errors) == 2
