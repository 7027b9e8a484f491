"""
Tests for SettingsService: fetch, single update and bulk reconciliation.
"""

import pytest
from unittest.mock import AsyncMock

from sqlalchemy import event, update
from sqlalchemy.exc import OperationalError

from schooladmin.exceptions import DuplicateKeyError, NotFoundError, TransactionError, ValidationError
from schooladmin.models.setting import Setting, SettingType
from schooladmin.schemas.common import DeliveryResultResponse
from schooladmin.services.settings_service import SettingsService

EMAIL_KEYS = {
    "emailEnabled", "emailProvider", "smtpHost", "smtpPort", "smtpUsername",
    "smtpPassword", "smtpFromEmail", "smtpFromName", "emailEncryption",
}


async def _fresh_value(session_factory, key):
    async with session_factory() as s:
        return await SettingsService(s).get_value(key)


class TestFetch:
    @pytest.mark.asyncio
    async def test_fetch_all_decodes_values(self, session):
        values = await SettingsService(session).fetch()
        assert len(values) == 31
        assert values["smtpPort"] == 587
        assert values["requireStrongPassword"] is True
        assert values["emailEnabled"] is False
        assert values["appName"] == "School ERP Platform"

    @pytest.mark.asyncio
    async def test_category_filter(self, session):
        values = await SettingsService(session).fetch("email")
        assert set(values) == EMAIL_KEYS

    @pytest.mark.asyncio
    async def test_unknown_category_is_empty(self, session):
        assert await SettingsService(session).fetch("transport") == {}

    @pytest.mark.asyncio
    async def test_malformed_row_falls_back_to_raw_text(self, session):
        await session.execute(update(Setting).where(Setting.key == "smtpPort").values(value="five-eight-seven"))
        await session.commit()

        values = await SettingsService(session).fetch("email")
        assert values["smtpPort"] == "five-eight-seven"
        assert values["emailEnabled"] is False

    @pytest.mark.asyncio
    async def test_oversized_stored_number_falls_back_to_raw_text(self, session):
        huge = "9" * 5000
        await session.execute(update(Setting).where(Setting.key == "smtpPort").values(value=huge))
        await session.commit()

        values = await SettingsService(session).fetch("email")
        assert values["smtpPort"] == huge
        assert values["emailProvider"] == "smtp"

    @pytest.mark.asyncio
    async def test_get_value_default(self, session):
        service = SettingsService(session)
        assert await service.get_value("sessionTimeout") == 30
        assert await service.get_value("missing", default="fallback") == "fallback"


class TestUpdateOne:
    @pytest.mark.asyncio
    async def test_update_persists_typed_value(self, session, session_factory):
        result = await SettingsService(session).update_one("smtpPort", 25)
        assert result.value == 25
        assert result.type == SettingType.NUMBER
        assert await _fresh_value(session_factory, "smtpPort") == 25

    @pytest.mark.asyncio
    async def test_unknown_key_is_rejected(self, session, session_factory):
        with pytest.raises(NotFoundError):
            await SettingsService(session).update_one("doesNotExist", "x")
        assert await _fresh_value(session_factory, "doesNotExist") is None

    @pytest.mark.asyncio
    async def test_incompatible_value_is_rejected(self, session, session_factory):
        with pytest.raises(ValidationError):
            await SettingsService(session).update_one("enableTwoFactor", "sometimes")
        assert await _fresh_value(session_factory, "enableTwoFactor") is False

    @pytest.mark.asyncio
    async def test_same_value_still_refreshes_updated_at(self, session):
        service = SettingsService(session)
        before = (await service.get_setting("currency")).updated_at
        result = await service.update_one("currency", "INR")
        assert result.value == "INR"
        assert result.updated_at is not None
        assert result.updated_at != before

    @pytest.mark.asyncio
    async def test_type_is_not_changed_by_update(self, session):
        service = SettingsService(session)
        with pytest.raises(ValidationError):
            await service.update_one("passwordMinLength", True)
        result = await service.update_one("passwordMinLength", "10")
        assert result.value == 10
        assert result.type == SettingType.NUMBER


class TestCreateSetting:
    @pytest.mark.asyncio
    async def test_create_json_setting(self, session, session_factory):
        created = await SettingsService(session).create_setting(
            "workingDays", ["mon", "tue", "wed"], SettingType.JSON, "general", "School working days"
        )
        assert created.value == ["mon", "tue", "wed"]
        assert await _fresh_value(session_factory, "workingDays") == ["mon", "tue", "wed"]

    @pytest.mark.asyncio
    async def test_create_duplicate(self, session):
        with pytest.raises(DuplicateKeyError):
            await SettingsService(session).create_setting("appName", "Other", SettingType.STRING)

    @pytest.mark.asyncio
    async def test_duplicate_is_reported_before_value_shape(self, session):
        with pytest.raises(DuplicateKeyError):
            await SettingsService(session).create_setting("smtpPort", "not-a-number", SettingType.NUMBER)

    @pytest.mark.asyncio
    async def test_empty_key_is_rejected(self, session, session_factory):
        service = SettingsService(session)
        for key in ("", "   "):
            with pytest.raises(ValidationError):
                await service.create_setting(key, "x")
        assert await _fresh_value(session_factory, "") is None


class TestBulkUpdate:
    @pytest.mark.asyncio
    async def test_unknown_keys_are_skipped(self, session, session_factory):
        result = await SettingsService(session).update_bulk({"nonexistentKey": "x", "smtpPort": "25"})

        assert [s.key for s in result.updated] == ["smtpPort"]
        assert result.updated[0].value == 25
        assert result.skipped == ["nonexistentKey"]
        assert result.failures == []
        assert await _fresh_value(session_factory, "smtpPort") == 25
        assert await _fresh_value(session_factory, "nonexistentKey") is None

    @pytest.mark.asyncio
    async def test_type_violation_is_isolated(self, session, session_factory):
        result = await SettingsService(session).update_bulk({"smtpPort": "not-a-number", "smsEnabled": "true"})

        assert [s.key for s in result.updated] == ["smsEnabled"]
        assert [f.key for f in result.failures] == ["smtpPort"]
        assert result.failures[0].reason
        assert await _fresh_value(session_factory, "smsEnabled") is True
        assert await _fresh_value(session_factory, "smtpPort") == 587

    @pytest.mark.asyncio
    async def test_mixed_types(self, session, session_factory):
        result = await SettingsService(session).update_bulk({
            "appName": "Springfield High",
            "maxLoginAttempts": 3,
            "autoBackupEnabled": True,
            "backupFrequency": "weekly",
        })
        assert len(result.updated) == 4
        assert await _fresh_value(session_factory, "maxLoginAttempts") == 3
        assert await _fresh_value(session_factory, "autoBackupEnabled") is True

    @pytest.mark.asyncio
    async def test_empty_input(self, session):
        result = await SettingsService(session).update_bulk({})
        assert result.updated == [] and result.failures == [] and result.skipped == []

    @pytest.mark.asyncio
    async def test_write_failure_rolls_back_everything(self, engine, session, session_factory):
        executed = []

        def fail_on_language_update(conn, cursor, statement, parameters, context, executemany):
            if statement.lstrip().upper().startswith("UPDATE"):
                executed.append(parameters)
                if "hi" in str(parameters):
                    raise OperationalError(statement, parameters, Exception("disk I/O error"))

        event.listen(engine.sync_engine, "before_cursor_execute", fail_on_language_update)
        try:
            with pytest.raises(TransactionError):
                await SettingsService(session).update_bulk({"currency": "USD", "language": "hi"})
        finally:
            event.remove(engine.sync_engine, "before_cursor_execute", fail_on_language_update)

        # The flush reached the database before failing.
        assert executed
        assert await _fresh_value(session_factory, "currency") == "INR"
        assert await _fresh_value(session_factory, "language") == "en"

    @pytest.mark.asyncio
    async def test_oversized_number_is_a_per_key_failure(self, session, session_factory):
        result = await SettingsService(session).update_bulk({"smtpPort": "9" * 5000, "smsEnabled": "true"})

        assert [s.key for s in result.updated] == ["smsEnabled"]
        assert [f.key for f in result.failures] == ["smtpPort"]
        assert await _fresh_value(session_factory, "smsEnabled") is True
        assert await _fresh_value(session_factory, "smtpPort") == 587


class TestNotificationPassThrough:
    @pytest.mark.asyncio
    async def test_email_uses_current_email_settings(self, session):
        notifier = AsyncMock()
        notifier.send_test_email.return_value = DeliveryResultResponse(success=False, message="Email is not enabled in settings")
        service = SettingsService(session, notifier=notifier)

        result = await service.send_test_email("parent@example.org")

        assert result.success is False
        assert result.message == "Email is not enabled in settings"
        email_settings, to, subject, message = notifier.send_test_email.call_args.args
        assert set(email_settings) == EMAIL_KEYS
        assert email_settings["smtpPort"] == 587
        assert to == "parent@example.org"
        assert subject is None and message is None

    @pytest.mark.asyncio
    async def test_sms_uses_current_sms_settings(self, session):
        notifier = AsyncMock()
        notifier.send_test_sms.return_value = DeliveryResultResponse(success=True, message="Test SMS sent successfully")
        service = SettingsService(session, notifier=notifier)
        await service.update_one("smsEnabled", True)

        result = await service.send_test_sms("+919876543210", "Hello")

        assert result.success is True
        sms_settings, to, message = notifier.send_test_sms.call_args.args
        assert sms_settings["smsEnabled"] is True
        assert sms_settings["smsProvider"] == "twilio"
        assert to == "+919876543210"
        assert message == "Hello"
