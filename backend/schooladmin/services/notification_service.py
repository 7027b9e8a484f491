import logging
from typing import Optional, Dict, Any

from schooladmin.config import settings
from schooladmin.schemas.common import DeliveryResultResponse

logger = logging.getLogger(__name__)

DEFAULT_FROM_NAME = "School ERP"
DEFAULT_EMAIL_SUBJECT = "Test Email from School ERP"
DEFAULT_EMAIL_MESSAGE = "This is a test email from School ERP Platform."
DEFAULT_SMS_MESSAGE = "Test SMS from School ERP"


class NotificationError(Exception):
    pass


class NotificationService:
    """Delivers test messages using the provider settings stored in the database.

    Settings arrive already decoded (``smtpPort`` is an int, ``emailEnabled``
    a bool). Every failure is reported back in the result, never raised.
    """

    def __init__(self, smtp_timeout: Optional[float] = None, sms_timeout: Optional[float] = None):
        self.smtp_timeout = smtp_timeout or settings.SMTP_TIMEOUT
        self.sms_timeout = sms_timeout or settings.SMS_TIMEOUT

    async def send_test_email(
        self,
        email_settings: Dict[str, Any],
        to: str,
        subject: Optional[str] = None,
        message: Optional[str] = None,
    ) -> DeliveryResultResponse:
        try:
            await self._send_email(email_settings, to, subject or DEFAULT_EMAIL_SUBJECT, message or DEFAULT_EMAIL_MESSAGE)
            return DeliveryResultResponse(success=True, message="Test email sent successfully")
        except Exception as e:
            logger.error(f"Test email to {to} failed: {e}")
            return DeliveryResultResponse(success=False, message=str(e) or "Failed to send test email")

    async def send_test_sms(
        self,
        sms_settings: Dict[str, Any],
        to: str,
        message: Optional[str] = None,
    ) -> DeliveryResultResponse:
        try:
            result_message = await self._send_sms(sms_settings, to, message or DEFAULT_SMS_MESSAGE)
            return DeliveryResultResponse(success=True, message=result_message)
        except Exception as e:
            logger.error(f"Test SMS to {to} failed: {e}")
            return DeliveryResultResponse(success=False, message=str(e) or "Failed to send test SMS")

    async def _send_email(self, config: Dict[str, Any], to: str, subject: str, body: str):
        import aiosmtplib
        from email.mime.text import MIMEText
        from email.mime.multipart import MIMEMultipart

        if not config.get("emailEnabled"):
            raise NotificationError("Email is not enabled in settings")

        smtp_host = config.get("smtpHost")
        if not smtp_host:
            raise NotificationError("SMTP host is not configured")
        smtp_port = config.get("smtpPort") or 587
        username = config.get("smtpUsername") or None
        password = config.get("smtpPassword") or None
        from_name = config.get("smtpFromName") or DEFAULT_FROM_NAME
        from_email = config.get("smtpFromEmail") or username or ""
        encryption = (config.get("emailEncryption") or "").lower()

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f'"{from_name}" <{from_email}>'
        msg["To"] = to
        msg.attach(MIMEText(body, "plain"))
        msg.attach(MIMEText(f"<p>{body}</p>", "html"))

        await aiosmtplib.send(
            msg,
            hostname=smtp_host,
            port=int(smtp_port),
            username=username,
            password=password,
            use_tls=encryption == "ssl",
            start_tls=encryption == "tls",
            timeout=self.smtp_timeout,
        )
        logger.info(f"Test email sent to {to} via {smtp_host}:{smtp_port}")

    async def _send_sms(self, config: Dict[str, Any], to: str, body: str) -> str:
        if not config.get("smsEnabled"):
            raise NotificationError("SMS is not enabled in settings")
        if not config.get("smsApiKey") or not config.get("smsApiSecret"):
            raise NotificationError("SMS API credentials are not configured")

        provider = (config.get("smsProvider") or "").lower()
        if provider == "twilio":
            await self._send_twilio(config, to, body)
            return "Test SMS sent successfully"

        logger.info(f"SMS test: to={to} provider={provider or 'unknown'} message={body!r}")
        return "SMS test initiated (check logs for details)"

    async def _send_twilio(self, config: Dict[str, Any], to: str, body: str):
        import httpx

        account_sid = config["smsApiKey"]
        sender = config.get("smsSenderId")
        if not sender:
            raise NotificationError("SMS sender ID is not configured")

        url = f"{settings.TWILIO_API_BASE}/Accounts/{account_sid}/Messages.json"
        async with httpx.AsyncClient(timeout=self.sms_timeout) as client:
            resp = await client.post(
                url,
                data={"To": to, "From": sender, "Body": body},
                auth=(account_sid, config["smsApiSecret"]),
            )
            resp.raise_for_status()
        logger.info(f"Test SMS sent to {to} via twilio")
