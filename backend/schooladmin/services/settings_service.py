import logging
from typing import Optional, Dict, Any, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.exceptions import CoercionError, DuplicateKeyError, NotFoundError, TransactionError, ValidationError
from schooladmin.models.setting import Setting, SettingCategory, SettingType
from schooladmin.schemas.common import DeliveryResultResponse
from schooladmin.schemas.setting import BulkUpdateResponse, SettingFailure, SettingResponse
from schooladmin.services import coercion
from schooladmin.services.notification_service import NotificationService
from schooladmin.services.setting_store import SettingStore

logger = logging.getLogger(__name__)


def to_response(setting: Setting) -> SettingResponse:
    return SettingResponse(
        id=setting.id,
        key=setting.key,
        value=coercion.decode(setting.value, setting.type),
        type=setting.type,
        category=setting.category,
        description=setting.description,
        created_at=setting.created_at,
        updated_at=setting.updated_at,
    )


class SettingsService:
    def __init__(self, session: AsyncSession, notifier: Optional[NotificationService] = None):
        self.session = session
        self.store = SettingStore(session)
        self.notifier = notifier or NotificationService()

    async def fetch(self, category: Optional[str] = None) -> Dict[str, Any]:
        """Decoded ``{key: value}`` for every setting, optionally one category.

        A row whose text no longer parses as its type is returned as the raw
        text and logged, so one bad row cannot fail the whole response.
        """
        result = {}
        for setting in await self.store.get_all(category):
            try:
                result[setting.key] = coercion.decode(setting.value, setting.type)
            except CoercionError as e:
                logger.warning(f"Setting {setting.key} ({setting.type.value}) could not be decoded: {e}")
                result[setting.key] = setting.value
        return result

    async def get_setting(self, key: str) -> SettingResponse:
        setting = await self.store.get_by_key(key)
        if setting is None:
            raise NotFoundError(key)
        return to_response(setting)

    async def get_value(self, key: str, default: Any = None) -> Any:
        setting = await self.store.get_by_key(key)
        if setting is None:
            return default
        return coercion.decode(setting.value, setting.type)

    async def create_setting(
        self,
        key: str,
        value: Any,
        setting_type: SettingType = SettingType.STRING,
        category: Optional[str] = None,
        description: Optional[str] = None,
    ) -> SettingResponse:
        if not key or not key.strip():
            raise ValidationError("Setting key must not be empty")
        if await self.store.get_by_key(key) is not None:
            raise DuplicateKeyError(key)
        raw = coercion.encode(value, setting_type)
        setting = await self.store.add(key, raw, setting_type, category, description)
        await self._commit()
        logger.info(f"Created setting {key} ({SettingType(setting_type).value})")
        return to_response(setting)

    async def update_one(self, key: str, value: Any) -> SettingResponse:
        setting = await self.store.get_by_key(key)
        if setting is None:
            raise NotFoundError(key)
        raw = coercion.encode(value, setting.type)
        setting = await self.store.upsert_value(key, raw)
        await self._commit()
        return to_response(setting)

    async def update_bulk(self, values: Dict[str, Any]) -> BulkUpdateResponse:
        """Apply many ``{key: value}`` changes at once.

        Unknown keys are skipped and values that do not fit their type are
        reported as failures; neither blocks the rest. Everything accepted is
        committed in a single transaction or not at all.
        """
        known = {s.key: s for s in await self.store.get_many(values.keys())}
        skipped: List[str] = []
        failures: List[SettingFailure] = []
        accepted = []

        for key, value in values.items():
            setting = known.get(key)
            if setting is None:
                skipped.append(key)
                continue
            try:
                accepted.append((setting, coercion.encode(value, setting.type)))
            except ValidationError as e:
                failures.append(SettingFailure(key=key, reason=str(e)))

        for setting, raw in accepted:
            self.store.apply_value(setting, raw)
        await self._commit()

        logger.info(
            f"Bulk settings update: {len(accepted)} applied, "
            f"{len(failures)} rejected, {len(skipped)} skipped"
        )
        return BulkUpdateResponse(
            updated=[to_response(s) for s, _ in accepted],
            failures=failures,
            skipped=skipped,
        )

    async def send_test_email(
        self, to: str, subject: Optional[str] = None, message: Optional[str] = None
    ) -> DeliveryResultResponse:
        email_settings = await self.fetch(SettingCategory.EMAIL.value)
        return await self.notifier.send_test_email(email_settings, to, subject, message)

    async def send_test_sms(self, to: str, message: Optional[str] = None) -> DeliveryResultResponse:
        sms_settings = await self.fetch(SettingCategory.SMS.value)
        return await self.notifier.send_test_sms(sms_settings, to, message)

    async def _commit(self):
        try:
            await self.store.commit()
        except SQLAlchemyError as e:
            await self.store.rollback()
            logger.error(f"Settings write rolled back: {e}")
            raise TransactionError(f"Settings write failed: {e}") from e
