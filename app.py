from __future__ import annotations

import os
import secrets
import socket
from typing import Any

from dotenv import load_dotenv
from flask import Flask, Response, current_app, jsonify, request
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from contactus.auth import csrf_protect, current_user_id, generate_csrf_token
from contactus.config import load_model_config
from contactus.emailer import EmailSender, build_email_sender
from contactus.errors import ModelError
from contactus.models import Attachment, ContactUsParams, ModelConfig, RequestData, User
from contactus.submitter import create_and_send_email


load_dotenv()

SEND_FAILED_MESSAGE = (
    "We were unable to send your message. Please try again later or email us directly."
)


def _resolve_secret_key_path(instance_path: str) -> str:
    explicit_path = os.getenv("SECRET_KEY_PATH", "").strip()
    if explicit_path:
        return explicit_path
    return os.path.join(instance_path, "secret_key.txt")


def _ensure_secret_key(instance_path: str) -> str:
    key_path = _resolve_secret_key_path(instance_path)
    try:
        os.makedirs(os.path.dirname(key_path), exist_ok=True)
        if os.path.exists(key_path):
            with open(key_path, "r", encoding="utf-8") as fh:
                existing = fh.read().strip()
                if existing:
                    return existing
        generated = secrets.token_urlsafe(64)
        with open(key_path, "w", encoding="utf-8") as fh:
            fh.write(generated)
        return generated
    except OSError:
        return secrets.token_urlsafe(64)


def create_app(
    email_sender: EmailSender | None = None,
    model_config: ModelConfig | None = None,
) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY") or _ensure_secret_key(app.instance_path)
    app.config["CONTACT_EMAIL_SENDER"] = email_sender
    app.config["CONTACT_MODEL_CONFIG"] = model_config

    max_form_mb_raw = os.getenv("MAX_FORM_MEMORY_MB")
    if max_form_mb_raw is not None:
        max_form_mb = max_form_mb_raw.strip()
        if max_form_mb:
            try:
                parsed_mb = float(max_form_mb)
                max_form_bytes = int(parsed_mb * 1024 * 1024)
            except ValueError:
                app.logger.warning("MAX_FORM_MEMORY_MB is not a number; ignoring override.")
                max_form_bytes = 0
        else:
            max_form_bytes = 0
    else:
        max_form_bytes = 0

    # Always set these keys so request.max_content_length has a safe default.
    if max_form_bytes and max_form_bytes > 0:
        app.config["MAX_FORM_MEMORY_SIZE"] = max_form_bytes
        app.config["MAX_CONTENT_LENGTH"] = max_form_bytes
    else:
        app.config["MAX_FORM_MEMORY_SIZE"] = None
        app.config["MAX_CONTENT_LENGTH"] = None

    @app.before_request
    def before_request() -> None:  # type: ignore[override]
        csrf_protect()

    register_routes(app)

    return app


def get_model_config() -> ModelConfig:
    configured = current_app.config.get("CONTACT_MODEL_CONFIG")
    return configured if configured is not None else load_model_config()


def get_email_sender() -> EmailSender:
    configured = current_app.config.get("CONTACT_EMAIL_SENDER")
    return configured if configured is not None else build_email_sender()


def parse_cc_emails(value: str | None) -> list[str]:
    if not value:
        return []
    return [e.strip() for e in value.replace("\n", ",").split(",") if e.strip()]


def read_attachments(files: list[FileStorage]) -> list[Attachment]:
    attachments = []
    for f in files:
        if not f or not f.filename:
            continue
        attachments.append(
            Attachment(
                filename=secure_filename(f.filename) or "attachment",
                content_type=f.mimetype or "application/octet-stream",
                content=f.read(),
            )
        )
    return attachments


def host_address(host_name: str) -> str:
    try:
        return socket.gethostbyname(host_name)
    except OSError:
        return "127.0.0.1"


def build_request_data() -> RequestData:
    forwarded = request.headers.get("X-Forwarded-For", "")
    ip = forwarded.split(",")[0].strip() if forwarded else (request.remote_addr or "")
    host_name = socket.gethostname()
    return RequestData(
        user_agent=request.headers.get("User-Agent", ""),
        referrer=request.headers.get("Referer", ""),
        ip_address=ip,
        app_host_name=host_name,
        app_host_address=host_address(host_name),
    )


def error_response(message: str, status: int) -> tuple[Response, int]:
    return jsonify({"status": "error", "message": message}), status


def register_routes(app: Flask) -> None:
    @app.route("/contact", methods=["GET"])
    def contact_form() -> dict[str, Any]:
        return {"csrf_token": generate_csrf_token()}

    @app.route("/contact", methods=["POST"])
    def contact_submit() -> Any:
        subject = request.form.get("subject", "").strip()
        message = request.form.get("message", "")
        reporter_email = request.form.get("reporterEmail", "").strip()

        if not subject or not message.strip():
            return error_response("Please fill out both the subject and message.", 400)

        params = ContactUsParams(
            subject,
            reporter_email,
            parse_cc_emails(request.form.get("ccEmails")),
            message,
            read_attachments(request.files.getlist("attachments")),
        )

        try:
            create_and_send_email(
                params,
                User(current_user_id()),
                build_request_data(),
                get_model_config(),
                get_email_sender(),
            )
        except ModelError:
            app.logger.exception("Failed sending contact emails.")
            return error_response(SEND_FAILED_MESSAGE, 500)

        return jsonify({"status": "success"})


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
