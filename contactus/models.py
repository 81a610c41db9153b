from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

REDMINE_TO_EMAIL = "REDMINE_TO_EMAIL"
REDMINE_FROM_EMAIL = "REDMINE_FROM_EMAIL"


@dataclass(frozen=True)
class Attachment:
    filename: str
    content_type: str
    content: bytes


@dataclass(frozen=True, eq=False)
class ContactUsParams:
    """
    The fields of one contact-form submission.

    Values are stored exactly as given. Validation happens in the form handler
    before this object is built.
    """

    subject: str
    reporter_email: str
    cc_emails: Sequence[str]
    message: str
    attachments: Sequence[Any]


@dataclass(frozen=True)
class User:
    user_id: int


@dataclass(frozen=True)
class RequestData:
    user_agent: str = ""
    referrer: str = ""
    ip_address: str = ""
    app_host_name: str = ""
    app_host_address: str = ""


@dataclass(frozen=True)
class ModelConfig:
    smtp_server: str
    support_email: str
    display_name: str
    build_number: str
    properties: Mapping[str, str] = field(default_factory=dict)
