from email.mime.text import MIMEText
from unittest.mock import MagicMock

import pytest
import requests_mock
from click.testing import CliRunner

from ses_mailer.config import Config
from ses_mailer.mailer import Mailer, OutgoingMessage

SES_ENDPOINT = "https://email.us-east-1.amazonaws.com/"


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    monkeypatch.setenv("WORKSPACE", "test")
    monkeypatch.setenv("SENTRY_DSN", "None")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")  # noqa: S105
    for var in [
        "AWS_PROFILE",
        "AWS_SESSION_TOKEN",
        "LOG_LEVEL",
        "SES_ACCESS_KEY_ID",
        "SES_SECRET_ACCESS_KEY",
        "SES_REGION",
        "SES_API_VERSION",
        "SES_ENDPOINT",
        "SES_HOST",
        "SES_TIMEOUT",
    ]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_instance():
    return Config()


@pytest.fixture
def ses_credentials_env(monkeypatch):
    monkeypatch.setenv("SES_ACCESS_KEY_ID", "abc")
    monkeypatch.setenv("SES_SECRET_ACCESS_KEY", "123")  # noqa: S105


@pytest.fixture
def debug_logger():
    return MagicMock()


@pytest.fixture
def mailer(debug_logger):
    return Mailer(access_key="abc", secret_key="123", debug_logger=debug_logger)


@pytest.fixture
def email_message():
    message = MIMEText("Hello from SES")
    message["Subject"] = "Test message"
    message["From"] = "noreply@example.com"
    message["To"] = "Jane Doe <jane@example.com>, john@example.com"
    message["Cc"] = "cc@example.com"
    return message


@pytest.fixture
def raw_message(email_message):
    return email_message.as_bytes()


@pytest.fixture
def outgoing_message(raw_message):
    return OutgoingMessage(
        raw=raw_message, destinations=["jane@example.com", "john@example.com"]
    )


@pytest.fixture
def message_file(tmp_path, raw_message):
    path = tmp_path / "message.eml"
    path.write_bytes(raw_message)
    return path


@pytest.fixture
def mocked_ses():
    with requests_mock.Mocker() as m:
        m.post(SES_ENDPOINT, text="Success")
        yield m


@pytest.fixture
def mocked_ses_error(ses_error_response):
    with requests_mock.Mocker() as m:
        m.post(SES_ENDPOINT, text=ses_error_response, status_code=400)
        yield m


@pytest.fixture
def ses_error_response():
    return (
        '<ErrorResponse xmlns="http://ses.amazonaws.com/doc/2010-12-01/">'
        "<Error><Type>Sender</Type><Code>MessageRejected</Code>"
        "<Message>Email address is not verified.</Message></Error>"
        "<RequestId>a1b2c3d4e5</RequestId></ErrorResponse>"
    )
