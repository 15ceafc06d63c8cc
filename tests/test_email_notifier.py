import asyncio
import smtplib
from email.message import EmailMessage

import pytest

from price_sentinel.errors import ArgumentError, EmailDeliveryError, OperationError
from price_sentinel.notifications.email import EmailNotifier, SmtpConfig, validate_email_parameters
from price_sentinel.settings import Settings

CONFIG = SmtpConfig(
    server="smtp.example.com",
    port=587,
    sender_email="alerts@example.com",
    username="bot",
    password="secret",
)


class _FakeSmtp:
    def __init__(self, *, fail_on: str = "", error: BaseException | None = None) -> None:
        self.calls: list[str] = []
        self.sent: list[EmailMessage] = []
        self._fail_on = fail_on
        self._error = error

    def _step(self, name: str) -> None:
        self.calls.append(name)
        if name == self._fail_on and self._error is not None:
            raise self._error

    def starttls(self) -> None:
        self._step("starttls")

    def login(self, user: str, password: str) -> None:
        self._step("login")

    def send_message(self, message: EmailMessage) -> None:
        self._step("send_message")
        self.sent.append(message)

    def quit(self) -> None:
        self.calls.append("quit")

    def close(self) -> None:
        self.calls.append("close")


def _notifier(smtp: _FakeSmtp) -> EmailNotifier:
    return EmailNotifier(config=CONFIG, smtp_factory=lambda host, port, timeout: smtp)


def test_send_delivers_plain_text_message() -> None:
    smtp = _FakeSmtp()

    asyncio.run(
        _notifier(smtp).send(to="ops@example.com", subject="Price alert", body="BUY PETR4")
    )

    assert smtp.calls == ["starttls", "login", "send_message", "quit"]
    message = smtp.sent[0]
    assert message["To"] == "ops@example.com"
    assert message["Subject"] == "Price alert"
    assert "alerts@example.com" in message["From"]
    assert message.get_content().strip() == "BUY PETR4"


@pytest.mark.parametrize(
    "step,error,kind",
    [
        ("login", smtplib.SMTPAuthenticationError(535, b"bad credentials"), "auth"),
        ("send_message", smtplib.SMTPDataError(554, b"rejected"), "protocol"),
        ("starttls", ConnectionResetError("reset"), "network"),
        ("send_message", RuntimeError("weird"), "other"),
    ],
)
def test_send_categorizes_failures_and_closes(step: str, error: Exception, kind: str) -> None:
    smtp = _FakeSmtp(fail_on=step, error=error)

    with pytest.raises(EmailDeliveryError) as exc:
        asyncio.run(_notifier(smtp).send(to="ops@example.com", subject="s", body="b"))

    assert exc.value.kind == kind
    assert exc.value.recipient == "ops@example.com"
    assert smtp.calls[-1] == "quit"


def test_connect_failure_is_network() -> None:
    def factory(host: str, port: int, timeout: float) -> smtplib.SMTP:
        raise OSError("unreachable")

    notifier = EmailNotifier(config=CONFIG, smtp_factory=factory)
    with pytest.raises(EmailDeliveryError) as exc:
        asyncio.run(notifier.send(to="ops@example.com", subject="s", body="b"))
    assert exc.value.kind == "network"


@pytest.mark.parametrize(
    "to,subject,body",
    [
        ("", "s", "b"),
        ("ops@example.com", " ", "b"),
        ("ops@example.com", "s", ""),
        ("no-at-sign", "s", "b"),
        ("a@" + "x" * 260, "s", "b"),
    ],
)
def test_invalid_parameters_are_argument_errors(to: str, subject: str, body: str) -> None:
    with pytest.raises(ArgumentError) as exc:
        validate_email_parameters(to, subject, body)
    assert exc.value.reason == "invalid email"


def test_invalid_parameters_never_reach_smtp() -> None:
    smtp = _FakeSmtp()
    with pytest.raises(ArgumentError):
        asyncio.run(_notifier(smtp).send(to="nobody", subject="s", body="b"))
    assert smtp.calls == []


def test_from_settings_builds_notifier() -> None:
    settings = Settings(
        SMTP_SERVER="smtp.example.com",
        SMTP_PORT=587,
        SENDER_EMAIL="alerts@example.com",
        SMTP_USERNAME="bot",
        SMTP_PASSWORD="secret",
    )
    assert isinstance(EmailNotifier.from_settings(settings), EmailNotifier)


@pytest.mark.parametrize(
    "overrides",
    [
        {"SMTP_SERVER": ""},
        {"SMTP_PORT": 0},
        {"SMTP_PORT": 70000},
        {"SENDER_EMAIL": ""},
        {"SMTP_USERNAME": ""},
        {"SMTP_PASSWORD": ""},
    ],
)
def test_from_settings_rejects_incomplete_smtp_settings(overrides: dict[str, object]) -> None:
    values: dict[str, object] = {
        "SMTP_SERVER": "smtp.example.com",
        "SMTP_PORT": 587,
        "SENDER_EMAIL": "alerts@example.com",
        "SMTP_USERNAME": "bot",
        "SMTP_PASSWORD": "secret",
    }
    values.update(overrides)
    settings = Settings(**values)  # type: ignore[arg-type]

    with pytest.raises(OperationError):
        EmailNotifier.from_settings(settings)
