import pytest

from app import create_app
from contactus.models import ContactUsParams, ModelConfig, RequestData, User


class RecordingSender:
    __test__ = False

    def __init__(self, fail_on=None, result=True):
        self.calls = []
        self.fail_on = fail_on
        self.result = result

    def send_email(self, smtp_server, to, from_, subject, body, cc, attachments):
        self.calls.append(
            {
                "smtp_server": smtp_server,
                "to": to,
                "from": from_,
                "subject": subject,
                "body": body,
                "cc": cc,
                "attachments": attachments,
            }
        )
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise RuntimeError("smtp unavailable")
        return self.result


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def model_config():
    return ModelConfig(
        smtp_server="smtp.site.org",
        support_email="support@site.org",
        display_name="PlasmoDB",
        build_number="68",
        properties={
            "REDMINE_TO_EMAIL": "redmine@site.org",
            "REDMINE_FROM_EMAIL": "tickets@site.org",
        },
    )


@pytest.fixture
def user():
    return User(1234)


@pytest.fixture
def request_data():
    return RequestData(
        user_agent="Mozilla/5.0",
        referrer="https://site.org/app/search",
        ip_address="10.0.0.7",
        app_host_name="web01",
        app_host_address="192.168.1.10",
    )


@pytest.fixture
def params():
    return ContactUsParams("Help", "", [], "It broke", [])


@pytest.fixture
def app(monkeypatch, sender, model_config):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    flask_app = create_app(email_sender=sender, model_config=model_config)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def csrf_token(client):
    return client.get("/contact").get_json()["csrf_token"]
