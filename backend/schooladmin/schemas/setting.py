from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from schooladmin.models.setting import SettingType


class SettingResponse(BaseModel):
    id: int
    key: str
    value: Any = None
    type: SettingType
    category: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SettingCreate(BaseModel):
    key: str = Field(min_length=1, max_length=100)
    value: Any = None
    type: SettingType = SettingType.STRING
    category: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None


class SettingValueUpdate(BaseModel):
    value: Any = None


class BulkSettingsUpdate(BaseModel):
    settings: Dict[str, SettingValueUpdate] = Field(min_length=1)


class SettingFailure(BaseModel):
    key: str
    reason: str


class BulkUpdateResponse(BaseModel):
    updated: List[SettingResponse] = []
    failures: List[SettingFailure] = []
    skipped: List[str] = []


class EmailTestRequest(BaseModel):
    to: str = Field(pattern=r"^[^@\s]+@[^@\s]+$")
    subject: Optional[str] = None
    message: Optional[str] = None


class SmsTestRequest(BaseModel):
    to: str = Field(pattern=r"^\+?[1-9]\d{1,14}$")
    message: Optional[str] = None
