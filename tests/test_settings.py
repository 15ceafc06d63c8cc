import pytest
from pydantic import ValidationError

from price_sentinel.errors import ConfigurationError
from price_sentinel.settings import Settings


def test_require_destination_email_rejects_blank() -> None:
    settings = Settings(DESTINATION_EMAIL="   ")
    with pytest.raises(ConfigurationError):
        settings.require_destination_email()


def test_require_destination_email_trims() -> None:
    settings = Settings(DESTINATION_EMAIL="  ops@example.com ")
    assert settings.require_destination_email() == "ops@example.com"


def test_settings_accept_legacy_env_names(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DESTINATION_EMAIL", raising=False)
    monkeypatch.delenv("TWELVEDATA_API_KEY", raising=False)
    monkeypatch.setenv("DestinationEmail", "legacy@example.com")
    monkeypatch.setenv("ApiKey", "legacy-key")
    monkeypatch.setenv("EmailSettings__Port", "2525")

    settings = Settings()

    assert settings.destination_email == "legacy@example.com"
    assert settings.twelvedata_api_key == "legacy-key"
    assert settings.smtp_port == 2525


def test_redacted_masks_secrets() -> None:
    settings = Settings(SMTP_PASSWORD="hunter2", TWELVEDATA_API_KEY="", SMTP_USERNAME="bot")
    redacted = settings.redacted()
    assert redacted["smtp_password"] == "***"
    assert redacted["twelvedata_api_key"] == ""
    assert redacted["smtp_username"] == "bot"


def test_log_level_is_normalized() -> None:
    assert Settings(LOG_LEVEL=" debug ").log_level == "DEBUG"


def test_unknown_log_level_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(LOG_LEVEL="verbose")
