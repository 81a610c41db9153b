# contactus/emailer.py

import base64
import logging
import os
import smtplib
from email.message import EmailMessage
from typing import Any, Optional, Protocol, Sequence

from contactus.errors import ModelError
from contactus.models import Attachment

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def send_email(
        self,
        smtp_server: str,
        to: str,
        from_: str,
        subject: str,
        body: str,
        cc: Optional[str],
        attachments: Sequence[Any],
    ) -> Optional[bool]: ...


def split_addresses(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [a.strip() for a in value.split(",") if a.strip()]


class SmtpEmailSender:
    """Sends plain-text mail through an SMTP relay."""

    def __init__(
        self,
        port: int = 25,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = False,
        timeout: float = 30,
    ) -> None:
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def build_message(
        self,
        to: str,
        from_: str,
        subject: str,
        body: str,
        cc: Optional[str],
        attachments: Sequence[Any],
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = from_
        msg["To"] = to
        if cc:
            msg["Cc"] = cc
        msg["Subject"] = subject
        msg.set_content(body)

        for attachment in attachments:
            maintype, subtype = ("application", "octet-stream")
            if attachment.content_type and "/" in attachment.content_type:
                maintype, subtype = attachment.content_type.split("/", 1)
            msg.add_attachment(
                attachment.content,
                maintype=maintype,
                subtype=subtype,
                filename=attachment.filename,
            )
        return msg

    def send_email(
        self,
        smtp_server: str,
        to: str,
        from_: str,
        subject: str,
        body: str,
        cc: Optional[str] = None,
        attachments: Sequence[Attachment] = (),
    ) -> bool:
        msg = self.build_message(to, from_, subject, body, cc, attachments)
        recipients = [to] + split_addresses(cc)

        try:
            with smtplib.SMTP(smtp_server, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password or "")
                server.send_message(msg, from_addr=from_, to_addrs=recipients)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("Failed to send email via SMTP server %s: %s", smtp_server, e)
            raise ModelError(f"Unable to send email via {smtp_server}") from e
        return True


class ResendEmailSender:
    """
    Sends mail through the Resend API.

    The SMTP server argument of send_email() is accepted for interface
    compatibility and ignored.
    """

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    def send_email(
        self,
        smtp_server: str,
        to: str,
        from_: str,
        subject: str,
        body: str,
        cc: Optional[str] = None,
        attachments: Sequence[Attachment] = (),
    ) -> bool:
        # Import the SDK only when this sender is actually used.
        try:
            import resend  # type: ignore
        except ImportError as e:
            logger.warning("Resend SDK not installed or failed to import: %s", e)
            raise ModelError("Resend SDK is not available") from e

        payload: dict[str, Any] = {
            "from": from_,
            "to": [to],
            "subject": subject,
            "text": body,
        }
        cc_list = split_addresses(cc)
        if cc_list:
            payload["cc"] = cc_list
        if attachments:
            payload["attachments"] = [
                {
                    "filename": a.filename,
                    "content": base64.b64encode(a.content).decode("ascii"),
                    "content_type": a.content_type,
                }
                for a in attachments
            ]

        try:
            resend.api_key = self.api_key
            resend.Emails.send(payload)
        except Exception as e:
            logger.warning("Failed to send email via Resend: %s", e)
            raise ModelError("Unable to send email via Resend") from e
        return True


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def _env_port(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("%s is not a number; using %s.", name, default)
        return default


def build_email_sender() -> EmailSender:
    """
    Pick a sender from the environment: Resend when RESEND_API_KEY is set,
    otherwise SMTP using SMTP_PORT, SMTP_USERNAME, SMTP_PASSWORD, SMTP_USE_TLS.
    """
    # Read env vars at call time so tests and deployments can change them.
    api_key = os.getenv("RESEND_API_KEY", "").strip()
    if api_key:
        return ResendEmailSender(api_key)

    return SmtpEmailSender(
        port=_env_port("SMTP_PORT", 25),
        username=os.getenv("SMTP_USERNAME", "").strip() or None,
        password=os.getenv("SMTP_PASSWORD") or None,
        use_tls=_env_flag("SMTP_USE_TLS"),
    )


def escape_html(s: str) -> str:
    """
    Escape HTML special characters so a body is safe to render in a web view.
    """
    if s is None:
        return ""
    return (
        str(s)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )
