import smtplib
import logging
from email.message import EmailMessage
from typing import Optional

from phishlens.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self,
                 smtp_host: Optional[str] = None,
                 smtp_port: Optional[int] = None,
                 username: Optional[str] = None,
                 password: Optional[str] = None,
                 sender: Optional[str] = None,
                 use_tls: Optional[bool] = None):
        """
        Outgoing mail for account verification

        Args:
            smtp_host: SMTP server; when unset messages are logged instead of sent
            smtp_port: SMTP port (587 for STARTTLS)
            username: SMTP login
            password: SMTP password or app-specific password
            sender: From header
            use_tls: upgrade the connection with STARTTLS
        """
        self.smtp_host = smtp_host if smtp_host is not None else settings.SMTP_HOST
        self.smtp_port = smtp_port or settings.SMTP_PORT
        self.username = username if username is not None else settings.SMTP_USER
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.sender = sender or settings.SMTP_FROM
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host)

    def send_otp(self, to_address: str, name: str, otp: str) -> bool:
        subject = "Your PhishLens verification code"
        body = (
            f"Hi {name},\n\n"
            f"Your verification code is: {otp}\n\n"
            f"The code expires in {settings.OTP_EXPIRE_MINUTES} minutes. "
            "If you did not request it, you can ignore this message.\n\n"
            "- PhishLens"
        )
        if not self.is_configured:
            logger.info(f"SMTP not configured - verification code for {to_address}: {otp}")
            return False
        return self._send(to_address, subject, body)

    def send_welcome(self, to_address: str, name: str) -> bool:
        subject = "Welcome to PhishLens"
        body = (
            f"Hi {name},\n\n"
            "Your account is verified. Paste any suspicious email, message or link "
            "into PhishLens to get an instant risk assessment.\n\n"
            "- PhishLens"
        )
        if not self.is_configured:
            logger.info(f"SMTP not configured - skipping welcome mail to {to_address}")
            return False
        return self._send(to_address, subject, body)

    def _send(self, to_address: str, subject: str, body: str) -> bool:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to_address
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=15) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(message)
            logger.info(f"✓ Mail '{subject}' sent to {to_address}")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"✗ Failed to send mail to {to_address}: {e}")
            return False
