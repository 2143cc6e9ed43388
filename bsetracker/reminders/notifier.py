"""
Email delivery for reminder notifications.

``send`` raises DeliveryError on any non-success so the dispatcher can leave
the reminder unfired for the next pass.
"""
import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Tuple

import requests

from .config import ReminderSettings
from .exceptions import ConfigurationError, DeliveryError

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Send an email to one address."""

    @abstractmethod
    def send(self, address: str, subject: str, body_html: str) -> None:
        pass


class ResendNotifier(Notifier):
    """Delivers through the Resend HTTP email API"""

    def __init__(self, api_key: str, from_email: str, api_url: str = "https://api.resend.com/emails", timeout: int = 10):
        if not api_key:
            raise ConfigurationError("REMINDER_RESEND_API_KEY is required but not configured")
        self.api_key = api_key
        self.from_email = from_email
        self.api_url = api_url
        self.timeout = timeout

    def send(self, address: str, subject: str, body_html: str) -> None:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "from": self.from_email,
            "to": [address],
            "subject": subject,
            "html": body_html,
        }
        try:
            response = requests.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise DeliveryError(f"Email request to {address} failed: {e}") from e

        if not response.ok:
            try:
                detail = response.json()
            except ValueError:
                detail = response.text
            logger.error(f"Error sending email to {address}: {response.status_code} {detail}")
            raise DeliveryError(f"Email provider returned {response.status_code}: {detail}")


class SmtpNotifier(Notifier):
    """Delivers over SMTP (SSL on 465, STARTTLS otherwise)"""

    def __init__(self, server: str, port: int, username: str, password: str, from_email: str, timeout: int = 10):
        if not server:
            raise ConfigurationError("REMINDER_SMTP_SERVER is required but not configured")
        if not username or not password:
            raise ConfigurationError("REMINDER_SMTP_USERNAME and REMINDER_SMTP_PASSWORD are required but not configured")
        self.server = server
        self.port = int(port)
        self.username = username
        self.password = password
        self.from_email = from_email
        self.timeout = timeout

    def send(self, address: str, subject: str, body_html: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = address
        msg.attach(MIMEText(body_html, "html"))

        context = ssl.create_default_context()
        try:
            if self.port == 465:
                with smtplib.SMTP_SSL(self.server, self.port, context=context, timeout=self.timeout) as server:
                    server.login(self.username, self.password)
                    server.send_message(msg)
            else:
                with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as server:
                    server.starttls(context=context)
                    server.login(self.username, self.password)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error sending to {address}: {e}")
            raise DeliveryError(f"SMTP delivery to {address} failed: {e}") from e


def build_notifier(settings: ReminderSettings) -> Notifier:
    if settings.EMAIL_BACKEND == "smtp":
        return SmtpNotifier(
            server=settings.SMTP_SERVER,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            from_email=settings.FROM_EMAIL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    return ResendNotifier(
        api_key=settings.RESEND_API_KEY,
        from_email=settings.FROM_EMAIL,
        api_url=settings.RESEND_API_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


def render_reminder_email(settings: ReminderSettings) -> Tuple[str, str]:
    """Default subject and HTML body for the self-exam reminder"""
    app_url = settings.APP_URL.rstrip("/")
    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
    </head>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #2D3748;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <h1>BSE Tracker</h1>
            <h2>It's Time for Your Monthly Self-Exam</h2>
            <p>This is your reminder that it's the optimal time in your cycle to perform your breast self-examination.
            Regular self-exams help you understand what's normal for you and notice changes early.</p>
            <p><strong>Best Practice:</strong> Perform your exam 7-10 days after your period ends, when breast tissue is least tender.</p>
            <p><a href="{app_url}/bse-check">Start Your Self-Exam</a></p>
            <p><strong>Important:</strong> If you notice any unusual changes, please consult your healthcare provider.</p>
            <p style="font-size: 12px; color: #A0AEC0;">You're receiving this because you enabled reminders in BSE Tracker.
            <a href="{app_url}/settings">Manage your preferences</a></p>
        </div>
    </body>
    </html>
    """
    return settings.EMAIL_SUBJECT, html
