from __future__ import annotations

import asyncio
import logging
import smtplib
from collections.abc import Callable
from email.message import EmailMessage
from email.utils import formataddr

from pydantic import BaseModel, Field, ValidationError

from price_sentinel.errors import ArgumentError, EmailDeliveryError, OperationError
from price_sentinel.logging_utils import sanitize_for_logging
from price_sentinel.settings import Settings

logger = logging.getLogger("price_sentinel.email")

_SENDER_NAME = "Asset Alerts"
_MAX_ADDRESS_CHARS = 254
_DEFAULT_TIMEOUT_SECONDS = 30.0

SmtpFactory = Callable[[str, int, float], smtplib.SMTP]


class SmtpConfig(BaseModel):
    server: str = Field(min_length=1)
    port: int = Field(ge=1, le=65535)
    sender_email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


def validate_recipient(to: str) -> None:
    if not to or not to.strip():
        raise ArgumentError("invalid email", detail="destination email must not be empty")
    if "@" not in to or len(to) > _MAX_ADDRESS_CHARS:
        raise ArgumentError("invalid email", detail="destination email has an invalid format")


def validate_email_parameters(to: str, subject: str, body: str) -> None:
    validate_recipient(to)
    if not subject or not subject.strip():
        raise ArgumentError("invalid email", detail="subject must not be empty")
    if not body or not body.strip():
        raise ArgumentError("invalid email", detail="body must not be empty")


def _default_smtp_factory(host: str, port: int, timeout: float) -> smtplib.SMTP:
    return smtplib.SMTP(host, port, timeout=timeout)


class EmailNotifier:
    def __init__(
        self,
        *,
        config: SmtpConfig,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        smtp_factory: SmtpFactory | None = None,
    ) -> None:
        self._config = config
        self._timeout_seconds = timeout_seconds
        self._smtp_factory = smtp_factory or _default_smtp_factory
        logger.info(
            "email_notifier_ready",
            extra={"email": sanitize_for_logging(config.sender_email)},
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        smtp_factory: SmtpFactory | None = None,
    ) -> EmailNotifier:
        try:
            config = SmtpConfig(
                server=settings.smtp_server.strip(),
                port=settings.smtp_port,
                sender_email=settings.sender_email.strip(),
                username=settings.smtp_username.strip(),
                password=settings.smtp_password,
            )
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            raise OperationError(f"invalid SMTP settings: {fields}") from e
        return cls(config=config, smtp_factory=smtp_factory)

    async def send(self, *, to: str, subject: str, body: str) -> None:
        validate_email_parameters(to, subject, body)
        message = self._build_message(to=to, subject=subject, body=body)
        await asyncio.to_thread(self._deliver, message, to)

    def _build_message(self, *, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((_SENDER_NAME, self._config.sender_email))
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    def _deliver(self, message: EmailMessage, to: str) -> None:
        safe_to = sanitize_for_logging(to)
        try:
            client = self._smtp_factory(
                self._config.server,
                self._config.port,
                self._timeout_seconds,
            )
        except OSError as e:
            logger.exception("smtp_connect_failed", extra={"email": safe_to})
            raise EmailDeliveryError(kind="network", recipient=to, message=str(e)) from e

        try:
            client.starttls()
            client.login(self._config.username, self._config.password)
            client.send_message(message)
            logger.info("email_sent", extra={"email": safe_to})
        except smtplib.SMTPAuthenticationError as e:
            logger.exception("smtp_auth_failed", extra={"email": safe_to})
            raise EmailDeliveryError(
                kind="auth",
                recipient=to,
                message="invalid SMTP credentials",
            ) from e
        except smtplib.SMTPException as e:
            # SMTPException subclasses OSError, so it must be matched first.
            logger.exception("smtp_protocol_error", extra={"email": safe_to})
            raise EmailDeliveryError(kind="protocol", recipient=to, message=str(e)) from e
        except OSError as e:
            logger.exception("smtp_network_error", extra={"email": safe_to})
            raise EmailDeliveryError(kind="network", recipient=to, message=str(e)) from e
        except Exception as e:
            logger.exception("smtp_unexpected_error", extra={"email": safe_to})
            raise EmailDeliveryError(kind="other", recipient=to, message=str(e)) from e
        finally:
            _close_quietly(client)


def _close_quietly(client: smtplib.SMTP) -> None:
    try:
        client.quit()
    except (smtplib.SMTPException, OSError):
        client.close()
