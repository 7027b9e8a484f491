import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, func
from schooladmin.database import Base


class SettingType(str, enum.Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"


class SettingCategory(str, enum.Enum):
    GENERAL = "general"
    EMAIL = "email"
    SMS = "sms"
    SECURITY = "security"
    NOTIFICATIONS = "notifications"
    BACKUP = "backup"


class Setting(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), nullable=False, unique=True, index=True)
    value = Column(Text, nullable=True)
    # Stored as plain text; the enum only admits the four known tags.
    type = Column(
        Enum(
            SettingType,
            native_enum=False,
            create_constraint=False,
            length=50,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=SettingType.STRING,
    )
    category = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column("createdAt", DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column("updatedAt", DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Setting(key={self.key}, type={self.type}, value={self.value})>"
