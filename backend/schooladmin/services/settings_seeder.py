import logging

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncConnection

from schooladmin.models.setting import Setting, SettingType

logger = logging.getLogger(__name__)

S, N, B = SettingType.STRING, SettingType.NUMBER, SettingType.BOOLEAN

# (key, value, type, category, description)
_SEED_ROWS = [
    ("appName", "School ERP Platform", S, "general", "Application name"),
    ("appUrl", "", S, "general", "Application URL"),
    ("timezone", "Asia/Kolkata", S, "general", "Default timezone"),
    ("dateFormat", "DD/MM/YYYY", S, "general", "Date format"),
    ("currency", "INR", S, "general", "Default currency"),
    ("language", "en", S, "general", "Default language"),
    ("emailEnabled", "false", B, "email", "Enable email notifications"),
    ("emailProvider", "smtp", S, "email", "Email provider"),
    ("smtpHost", "", S, "email", "SMTP host"),
    ("smtpPort", "587", N, "email", "SMTP port"),
    ("smtpUsername", "", S, "email", "SMTP username"),
    ("smtpPassword", "", S, "email", "SMTP password"),
    ("smtpFromEmail", "", S, "email", "From email address"),
    ("smtpFromName", "School ERP Platform", S, "email", "From name"),
    ("emailEncryption", "tls", S, "email", "Email encryption type"),
    ("smsEnabled", "false", B, "sms", "Enable SMS notifications"),
    ("smsProvider", "twilio", S, "sms", "SMS provider"),
    ("smsApiKey", "", S, "sms", "SMS API key"),
    ("smsApiSecret", "", S, "sms", "SMS API secret"),
    ("smsSenderId", "", S, "sms", "SMS sender ID"),
    ("sessionTimeout", "30", N, "security", "Session timeout in minutes"),
    ("passwordMinLength", "8", N, "security", "Minimum password length"),
    ("requireStrongPassword", "true", B, "security", "Require strong password"),
    ("enableTwoFactor", "false", B, "security", "Enable two-factor authentication"),
    ("maxLoginAttempts", "5", N, "security", "Maximum login attempts"),
    ("enableEmailNotifications", "true", B, "notifications", "Enable email notifications"),
    ("enableSmsNotifications", "false", B, "notifications", "Enable SMS notifications"),
    ("enablePushNotifications", "true", B, "notifications", "Enable push notifications"),
    ("autoBackupEnabled", "false", B, "backup", "Enable automatic backups"),
    ("backupFrequency", "daily", S, "backup", "Backup frequency"),
    ("backupRetentionDays", "30", N, "backup", "Backup retention period in days"),
]

DEFAULT_SETTINGS = [
    {"key": k, "value": v, "type": t, "category": c, "description": d}
    for k, v, t, c, d in _SEED_ROWS
]


async def seed_default_settings(conn: AsyncConnection) -> int:
    """Insert the full default set; the caller guarantees the table is empty."""
    await conn.execute(insert(Setting), DEFAULT_SETTINGS)
    logger.info(f"Seeded {len(DEFAULT_SETTINGS)} default settings")
    return len(DEFAULT_SETTINGS)
