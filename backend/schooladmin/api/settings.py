from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from schooladmin.database import get_session
from schooladmin.exceptions import DuplicateKeyError, NotFoundError, TransactionError, ValidationError
from schooladmin.schemas.common import DeliveryResultResponse
from schooladmin.schemas.setting import (
    BulkSettingsUpdate,
    BulkUpdateResponse,
    EmailTestRequest,
    SettingCreate,
    SettingResponse,
    SettingValueUpdate,
    SmsTestRequest,
)
from schooladmin.services.settings_service import SettingsService

router = APIRouter()


def get_settings_service(session: AsyncSession = Depends(get_session)) -> SettingsService:
    return SettingsService(session)


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, DuplicateKeyError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=422, detail=str(e))
    return HTTPException(status_code=500, detail="Settings could not be saved")


@router.get("/")
async def list_settings(category: Optional[str] = None, service: SettingsService = Depends(get_settings_service)):
    return await service.fetch(category)


@router.post("/", response_model=SettingResponse)
async def create_setting(data: SettingCreate, service: SettingsService = Depends(get_settings_service)):
    try:
        return await service.create_setting(data.key, data.value, data.type, data.category, data.description)
    except (DuplicateKeyError, ValidationError, TransactionError) as e:
        raise _http_error(e)


# Registered before "/{key}" so "bulk" is never captured as a key.
@router.put("/bulk", response_model=BulkUpdateResponse)
async def bulk_update_settings(data: BulkSettingsUpdate, service: SettingsService = Depends(get_settings_service)):
    try:
        return await service.update_bulk({key: item.value for key, item in data.settings.items()})
    except TransactionError as e:
        raise _http_error(e)


@router.post("/test/email", response_model=DeliveryResultResponse)
async def send_test_email(data: EmailTestRequest, service: SettingsService = Depends(get_settings_service)):
    return await service.send_test_email(data.to, data.subject, data.message)


@router.post("/test/sms", response_model=DeliveryResultResponse)
async def send_test_sms(data: SmsTestRequest, service: SettingsService = Depends(get_settings_service)):
    return await service.send_test_sms(data.to, data.message)


@router.get("/{key}", response_model=SettingResponse)
async def get_setting(key: str, service: SettingsService = Depends(get_settings_service)):
    try:
        return await service.get_setting(key)
    except (NotFoundError, ValidationError) as e:
        raise _http_error(e)


@router.put("/{key}", response_model=SettingResponse)
async def update_setting(key: str, data: SettingValueUpdate, service: SettingsService = Depends(get_settings_service)):
    try:
        return await service.update_one(key, data.value)
    except (NotFoundError, ValidationError, TransactionError) as e:
        raise _http_error(e)
