import logging
import os

from contactus.errors import ModelError
from contactus.models import REDMINE_FROM_EMAIL, REDMINE_TO_EMAIL, ModelConfig

logger = logging.getLogger(__name__)

REQUIRED_VARS = ("SUPPORT_EMAIL", REDMINE_TO_EMAIL, REDMINE_FROM_EMAIL)


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def load_model_config() -> ModelConfig:
    """Build the site configuration from environment variables."""
    missing = [name for name in REQUIRED_VARS if not _env(name)]
    if missing:
        logger.warning("Contact form not configured: missing env vars %s.", ", ".join(missing))
        raise ModelError(f"Missing required configuration: {', '.join(missing)}")

    return ModelConfig(
        smtp_server=_env("SMTP_SERVER", "localhost"),
        support_email=_env("SUPPORT_EMAIL"),
        display_name=_env("SITE_DISPLAY_NAME", "Data Portal"),
        build_number=_env("BUILD_NUMBER"),
        properties={
            REDMINE_TO_EMAIL: _env(REDMINE_TO_EMAIL),
            REDMINE_FROM_EMAIL: _env(REDMINE_FROM_EMAIL),
        },
    )
