import secrets
import time

from flask import abort, jsonify, request, session

CSRF_SESSION_KEY = "_csrf_token"
CSRF_TIMESTAMP_KEY = "_csrf_ts"
CSRF_TTL_SECONDS = 60 * 60

USER_ID_SESSION_KEY = "user_id"


def current_user_id() -> int:
    """Numeric id of the visitor, assigned on first use and kept in the session."""
    user_id = session.get(USER_ID_SESSION_KEY)
    if not user_id:
        user_id = secrets.randbelow(2**31 - 1) + 1
        session[USER_ID_SESSION_KEY] = user_id
    return int(user_id)


def generate_csrf_token() -> str:
    token = session.get(CSRF_SESSION_KEY)
    issued_at = session.get(CSRF_TIMESTAMP_KEY, 0)
    if not token or int(time.time()) - int(issued_at) > CSRF_TTL_SECONDS:
        token = secrets.token_urlsafe(32)
        session[CSRF_SESSION_KEY] = token
        session[CSRF_TIMESTAMP_KEY] = int(time.time())
    return token


def validate_csrf_token() -> bool:
    # Accept CSRF token from:
    # 1) form field (standard HTML forms)
    # 2) header X-CSRF-Token (fetch/AJAX)
    sent_token = request.form.get("csrf_token")

    if not sent_token:
        sent_token = request.headers.get("X-CSRF-Token")

    session_token = session.get(CSRF_SESSION_KEY)
    issued_at = session.get(CSRF_TIMESTAMP_KEY, 0)

    if not sent_token or not session_token:
        return False
    if not secrets.compare_digest(sent_token, session_token):
        return False
    if int(time.time()) - int(issued_at) > CSRF_TTL_SECONDS:
        return False
    return True


def csrf_protect() -> None:
    if request.method in {"POST", "PUT", "DELETE"} and not validate_csrf_token():
        response = jsonify({"status": "error", "message": "Invalid CSRF token"})
        response.status_code = 400
        abort(response)
