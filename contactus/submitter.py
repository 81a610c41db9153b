# contactus/submitter.py

import logging
from typing import Any, Optional, Sequence

from contactus.emailer import EmailSender, escape_html
from contactus.errors import ModelError
from contactus.models import (
    REDMINE_FROM_EMAIL,
    REDMINE_TO_EMAIL,
    ContactUsParams,
    ModelConfig,
    RequestData,
    User,
)

logger = logging.getLogger(__name__)

SEPARATOR = "---------------------"

AUTO_REPLY_TEXT = (
    "****THIS IS NOT A REPLY**** \nThis is an automatic"
    " response, that includes your message for your records, to let you"
    " know that we have received your email and will get back to you as"
    " soon as possible. Thanks so much for contacting us!\n\nThis was"
    " your message:\n\n"
)


def reply_address(params: ContactUsParams, support_email: str) -> str:
    return params.reporter_email if params.reporter_email else support_email


def cc_field(cc_emails: Sequence[str]) -> str:
    return ", ".join(cc_emails)


def build_meta_info(
    reply_email: str,
    cc: str,
    user: User,
    request_data: RequestData,
    build_number: str,
) -> str:
    # Redmine parses these lines; keep labels and order stable.
    return "\n".join(
        [
            f"ReplyTo: {reply_email}",
            f"CC: {cc}",
            "Privacy preferences: ",
            f"Uid: {user.user_id}",
            f"Browser information: {request_data.user_agent}",
            f"Referrer page: {request_data.referrer}",
            f"WDK Model version: {build_number}",
        ]
    )


def build_auto_reply_content(message: str) -> str:
    return f"{AUTO_REPLY_TEXT}{SEPARATOR}\n{message}\n{SEPARATOR}"


def build_redmine_meta_info(meta_info: str, display_name: str, request_data: RequestData) -> str:
    return (
        "Project: usersupportrequests\n"
        f"Category: {display_name}\n"
        "\n"
        f"{meta_info}\n"
        f"Client IP Address: {request_data.ip_address}\n"
        f"WDK Host: {request_data.app_host_name} ({request_data.app_host_address})\n"
    )


def _require(model: ModelConfig) -> tuple[str, str]:
    missing = []
    if not model.smtp_server:
        missing.append("SMTP server")
    if not model.support_email:
        missing.append("support email")
    redmine_to = model.properties.get(REDMINE_TO_EMAIL) or ""
    redmine_from = model.properties.get(REDMINE_FROM_EMAIL) or ""
    if not redmine_to:
        missing.append(REDMINE_TO_EMAIL)
    if not redmine_from:
        missing.append(REDMINE_FROM_EMAIL)
    if missing:
        raise ModelError(f"Contact form is not configured: missing {', '.join(missing)}.")
    return redmine_to, redmine_from


def _send(
    email_sender: EmailSender,
    smtp_server: str,
    to: str,
    from_: str,
    subject: str,
    body: str,
    cc: Optional[str],
    attachments: Sequence[Any],
) -> None:
    try:
        sent = email_sender.send_email(smtp_server, to, from_, subject, body, cc, attachments)
    except ModelError:
        raise
    except Exception as e:
        raise ModelError(f"Failed to send email to {to}: {e}") from e
    if sent is False:
        raise ModelError(f"Failed to send email to {to}.")


def create_and_send_email(
    params: ContactUsParams,
    user: User,
    request_data: RequestData,
    model: ModelConfig,
    email_sender: EmailSender,
) -> None:
    """
    Send the three emails for one contact-form submission, in order:

    1. an auto-reply from the support address back to the reporter (with CC),
    2. a copy of the message to the support address,
    3. a ticket email for Redmine.

    Raises ModelError if configuration is incomplete (nothing is sent) or if any
    send fails, in which case the remaining sends are skipped.
    """
    redmine_to, redmine_from = _require(model)

    support_email = model.support_email
    reply_email = reply_address(params, support_email)
    cc = cc_field(params.cc_emails)

    meta_info = build_meta_info(reply_email, cc, user, request_data, model.build_number)
    auto_reply_content = build_auto_reply_content(params.message)
    redmine_meta_info = build_redmine_meta_info(meta_info, model.display_name, request_data)

    logger.info("Sending contact emails uid=%s subject=%r", user.user_id, params.subject)

    # Auto-reply
    _send(
        email_sender,
        model.smtp_server,
        reply_email,
        support_email,
        params.subject,
        escape_html(f"{meta_info}\n\n{auto_reply_content}\n\n"),
        cc,
        params.attachments,
    )

    # Support copy
    _send(
        email_sender,
        model.smtp_server,
        support_email,
        reply_email,
        params.subject,
        escape_html(f"{meta_info}\n\n{params.message}\n\n"),
        None,
        params.attachments,
    )

    # Redmine ticket
    _send(
        email_sender,
        model.smtp_server,
        redmine_to,
        redmine_from,
        params.subject,
        escape_html(f"{redmine_meta_info}\n\n{params.message}\n\n"),
        None,
        params.attachments,
    )
