"""
Account emails.

Delivery priority: Resend > Mailgun > SMTP. The provider SDKs are blocking,
so each send runs in the default executor.
"""

import asyncio
import html as html_lib
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from functools import lru_cache

import httpx
import resend

from dealership.core.config import Settings, get_settings
from dealership.core.exceptions import NotificationError
from dealership.core.logging import get_logger
from dealership.models.account import AccountRole

logger = get_logger("email")


def _layout(title: str, body_html: str, footer: str = "") -> str:
    return f"""
    <div style="font-family: 'Segoe UI', Arial, sans-serif; max-width: 600px; margin: 0 auto; background: #f4f6f8; padding: 40px 30px; border-radius: 12px;">
        <div style="text-align: center; margin-bottom: 30px;">
            <h1 style="color: #14213d; font-size: 28px; margin: 0;">Auto2G</h1>
            <p style="color: #666; margin-top: 5px;">{title}</p>
        </div>
        <div style="background: white; border-radius: 10px; padding: 25px; box-shadow: 0 2px 8px rgba(0,0,0,0.06);">
            {body_html}
        </div>
        <p style="text-align: center; color: #999; font-size: 12px; margin-top: 25px;">
            {footer or "Auto2G - Used car dealership"}
        </p>
    </div>
    """


def _button(url: str, label: str) -> str:
    return f"""
    <div style="text-align: center; margin-top: 25px;">
        <a href="{url}"
           style="background: #fca311; color: #14213d; padding: 12px 30px; border-radius: 25px; text-decoration: none; font-weight: 600;">
            {label}
        </a>
    </div>
    """


class EmailNotifier:
    """Sends the account lifecycle emails through the first configured provider."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.frontend_url = settings.FRONTEND_URL.rstrip("/")
        self.customer_frontend_url = settings.CUSTOMER_FRONTEND_URL.rstrip("/")

    # ── Links ────────────────────────────────────────────────────────────────
    def frontend_for(self, role: AccountRole) -> str:
        """Customers use the public site; every other role the back office."""
        if role == AccountRole.CUSTOMER:
            return self.customer_frontend_url
        return self.frontend_url

    def _link(self, base: str, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{base}{path}"

    # ── Account emails ───────────────────────────────────────────────────────
    async def send_verification_email(self, to: str, token: str) -> bool:
        url = self._link(self.frontend_url, f"/verify-email?token={token}")
        html = _layout(
            "Confirm your email",
            f"""
            <h2 style="color: #14213d; margin-top: 0;">Welcome!</h2>
            <p style="color: #444;">Confirm your email address to activate your account.
            The link expires in two hours.</p>
            {_button(url, "Verify email")}
            """,
        )
        return await self._deliver(to, "Confirm your email | Auto2G", html)

    async def send_admin_account_setup(self, to: str, temporary_password: str, token: str) -> bool:
        url = self._link(self.frontend_url, f"/verify-email?token={token}")
        html = _layout(
            "Administrator account",
            f"""
            <h2 style="color: #14213d; margin-top: 0;">An administrator account was created for you</h2>
            <p style="color: #444;">Username: <strong>{to}</strong></p>
            <p style="color: #444;">Temporary password: <strong>{temporary_password}</strong></p>
            <p style="color: #444;">Verify your email, then sign in and change the password.</p>
            {_button(url, "Activate account")}
            """,
        )
        return await self._deliver(to, "Your administrator account | Auto2G", html)

    async def send_seller_account_setup(
        self, to: str, name: str, temporary_password: str, token: str
    ) -> bool:
        url = self._link(self.frontend_url, f"/seller-setup?token={token}")
        html = _layout(
            "Seller account",
            f"""
            <h2 style="color: #14213d; margin-top: 0;">Welcome, {html_lib.escape(name)}!</h2>
            <p style="color: #444;">Username: <strong>{to}</strong></p>
            <p style="color: #444;">Temporary password: <strong>{temporary_password}</strong></p>
            {_button(url, "Activate account")}
            """,
        )
        return await self._deliver(to, "Welcome to Auto2G! Activate your account", html)

    async def send_recover_password(self, to: str, reset_url: str) -> bool:
        html = _layout(
            "Password reset",
            f"""
            <p style="color: #444;">We received a request to reset your password.
            The link expires in 30 minutes. If you did not ask for it, ignore this email.</p>
            {_button(reset_url, "Reset password")}
            """,
        )
        return await self._deliver(to, "Reset your password | Auto2G", html)

    async def send_password_changed_confirmation(self, to: str, role: AccountRole) -> bool:
        html = _layout(
            "Password changed",
            f"""
            <p style="color: #444;">Your password was changed. If this wasn't you,
            reset it immediately.</p>
            {_button(self.frontend_for(role), "Go to Auto2G")}
            """,
        )
        return await self._deliver(to, "Your password was changed | Auto2G", html)

    async def send_email_changed_confirmation(self, to: str, role: AccountRole) -> bool:
        html = _layout(
            "Email changed",
            f"""
            <p style="color: #444;">This is now the email address of your Auto2G account.</p>
            {_button(self.frontend_for(role), "Go to Auto2G")}
            """,
        )
        return await self._deliver(to, "Your email was changed | Auto2G", html)

    # ── Transport ────────────────────────────────────────────────────────────
    async def _deliver(self, to: str, subject: str, html: str) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._send_email, to, subject, html)

    def _resend_configured(self) -> bool:
        return bool(self.settings.RESEND_API_KEY.strip())

    def _mailgun_configured(self) -> bool:
        return bool(self.settings.MAILGUN_API_KEY.strip() and self.settings.MAILGUN_DOMAIN.strip())

    def _smtp_configured(self) -> bool:
        s = self.settings
        return bool(s.SMTP_HOST and s.SMTP_PORT and s.SMTP_USER and s.SMTP_PASSWORD and s.SMTP_FROM_EMAIL)

    def _send_email(self, to: str, subject: str, html: str) -> bool:
        """Send one email. Returns False when no provider is configured."""
        if self._resend_configured():
            try:
                return self._send_via_resend(to, subject, html)
            except Exception as exc:
                logger.error("Resend failed, falling back to other providers: %s", exc)

        if self._mailgun_configured():
            return self._send_via_mailgun(to, subject, html)

        if not self._smtp_configured():
            logger.warning(
                "Email provider not configured - email to %s skipped (subject: %s)",
                to, subject,
            )
            return False

        return self._send_via_smtp(to, subject, html)

    def _send_via_resend(self, to: str, subject: str, html: str) -> bool:
        s = self.settings
        resend.api_key = s.RESEND_API_KEY.strip()
        from_email = s.SMTP_FROM_EMAIL or "onboarding@resend.dev"
        from_name = s.SMTP_FROM_NAME or "Auto2G"
        result = resend.Emails.send({
            "from": f"{from_name} <{from_email}>",
            "to": [to],
            "subject": subject,
            "html": html,
        })
        logger.info("Email sent to %s via Resend: %s", to, result.get("id"))
        return True

    def _mailgun_messages_url(self) -> str:
        base = self.settings.MAILGUN_BASE_URL.rstrip("/")
        domain = self.settings.MAILGUN_DOMAIN.strip()
        if base.endswith("/v3"):
            return f"{base}/{domain}/messages"
        return f"{base}/v3/{domain}/messages"

    def _send_via_mailgun(self, to: str, subject: str, html: str) -> bool:
        s = self.settings
        from_email = s.MAILGUN_FROM_EMAIL or s.SMTP_FROM_EMAIL
        from_name = s.MAILGUN_FROM_NAME or s.SMTP_FROM_NAME or from_email
        if not from_email:
            raise NotificationError("MAILGUN_FROM_EMAIL is required when using Mailgun API", to)

        try:
            response = httpx.post(
                self._mailgun_messages_url(),
                data={
                    "from": f"{from_name} <{from_email}>",
                    "to": to,
                    "subject": subject,
                    "html": html,
                },
                auth=("api", s.MAILGUN_API_KEY.strip()),
                timeout=s.MAILGUN_TIMEOUT_SECONDS,
            )
        except httpx.HTTPError as exc:
            raise NotificationError(f"Mailgun request failed: {exc}", to) from exc

        if response.status_code >= 400:
            snippet = response.text.strip().replace("\n", " ")
            raise NotificationError(
                f"Mailgun API error {response.status_code}: {snippet[:500]}", to
            )

        logger.info("Email sent to %s via Mailgun: %s", to, subject)
        return True

    def _send_via_smtp(self, to: str, subject: str, html: str) -> bool:
        s = self.settings
        msg = MIMEMultipart("alternative")
        msg["From"] = f"{s.SMTP_FROM_NAME or s.SMTP_FROM_EMAIL} <{s.SMTP_FROM_EMAIL}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html"))

        try:
            if int(s.SMTP_PORT) == 465:
                server = smtplib.SMTP_SSL(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SECONDS)
            else:
                server = smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SECONDS)
                server.starttls()
            try:
                server.login(s.SMTP_USER, s.SMTP_PASSWORD)
                server.send_message(msg)
            finally:
                # Some SMTP providers answer QUIT with 250
                try:
                    server.quit()
                except smtplib.SMTPResponseException as close_exc:
                    if close_exc.smtp_code not in (221, 250):
                        raise
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"SMTP send failed: {exc}", to) from exc

        logger.info("Email sent to %s: %s", to, subject)
        return True


@lru_cache
def get_email_notifier() -> EmailNotifier:
    return EmailNotifier(get_settings())
