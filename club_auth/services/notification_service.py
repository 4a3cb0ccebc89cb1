"""
Email notifier for verification and password reset links.

Uses the SMTP settings from club_auth.core.config.settings.
Gracefully skips delivery (logs a warning) if SMTP is not configured.
"""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional
import structlog

from ..core.config import Settings, settings as default_settings
from ..interfaces.notifier_interface import INotifier

logger = structlog.get_logger()


class SmtpNotifier(INotifier):
    """Delivers issued tokens as links to the club's frontend."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    def verification_url(self, token: str) -> str:
        return f"{self.config.FRONTEND_URL}/verify?token={token}"

    def reset_url(self, token: str) -> str:
        return f"{self.config.FRONTEND_URL}/reset-password?token={token}"

    async def send_verification_email(self, to: str, username: str, token: str) -> bool:
        url = self.verification_url(token)
        subject = f"Verify your email - {self.config.APP_NAME}"
        text_body = (
            f"Hello {username},\n\n"
            f"Thank you for signing up for {self.config.APP_NAME}!\n\n"
            "Please verify your email address by clicking the link below:\n\n"
            f"{url}\n\n"
            f"This link will expire in {self.config.TOKEN_EXPIRY_HOURS} hours.\n\n"
            "If you didn't create an account, please ignore this email.\n"
        )
        html_body = self._render_html(
            heading=f"Welcome, {username}!",
            intro=f"Thanks for joining {self.config.APP_NAME}. Confirm your email address to start picking films with your clubs.",
            button_label="Verify Email",
            url=url,
            footer="If you didn't create an account, please ignore this email.",
        )
        return await self._send(to, subject, text_body, html_body, kind="verification")

    async def send_password_reset_email(self, to: str, username: str, token: str) -> bool:
        url = self.reset_url(token)
        subject = f"Reset your password - {self.config.APP_NAME}"
        text_body = (
            f"Hello {username},\n\n"
            "We received a request to reset your password.\n\n"
            "Click the link below to reset your password:\n\n"
            f"{url}\n\n"
            f"This link will expire in {self.config.TOKEN_EXPIRY_HOURS} hours.\n\n"
            "If you didn't request a password reset, please ignore this email.\n"
        )
        html_body = self._render_html(
            heading=f"Hello {username},",
            intro="We received a request to reset your password.",
            button_label="Reset Password",
            url=url,
            footer="If you didn't request a password reset, please ignore this email.",
        )
        return await self._send(to, subject, text_body, html_body, kind="password_reset")

    def _render_html(self, heading: str, intro: str, button_label: str, url: str, footer: str) -> str:
        return f"""
    <div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 560px; margin: 0 auto; padding: 32px 24px;">
        <h1 style="font-size: 24px; margin: 0 0 16px 0;">{self.config.APP_NAME}</h1>
        <h2 style="font-size: 18px; margin: 0 0 12px 0;">{heading}</h2>
        <p style="font-size: 14px; line-height: 1.6;">{intro}</p>
        <a href="{url}" style="display: inline-block; background: #e50914; color: #fff; text-decoration: none; padding: 12px 32px; border-radius: 8px; font-weight: 600;">{button_label}</a>
        <p style="font-size: 13px; color: #666;">Or copy this link: <span style="word-break: break-all;">{url}</span></p>
        <p style="font-size: 13px; color: #666;">This link will expire in {self.config.TOKEN_EXPIRY_HOURS} hours.</p>
        <p style="font-size: 12px; color: #999;">{footer}</p>
    </div>
    """

    async def _send(self, to: str, subject: str, text_body: str, html_body: str, kind: str) -> bool:
        if not self.config.smtp_configured:
            logger.warning("SMTP not configured, skipping email", kind=kind)
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.config.EMAILS_FROM_NAME, self.config.EMAILS_FROM_EMAIL))
        msg["To"] = to
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._deliver, to, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email delivery failed", kind=kind, error=str(e))
            return False

        logger.info("Email sent", kind=kind)
        return True

    def _deliver(self, to: str, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.config.SMTP_HOST, self.config.SMTP_PORT, timeout=15) as server:
            if self.config.SMTP_TLS:
                server.starttls()
            server.login(self.config.SMTP_USER, self.config.SMTP_PASSWORD)
            server.sendmail(self.config.EMAILS_FROM_EMAIL, [to], msg.as_string())
