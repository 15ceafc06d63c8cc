__all__ = ["EmailNotifier", "SmtpConfig", "validate_email_parameters", "validate_recipient"]

from price_sentinel.notifications.email import (
    EmailNotifier,
    SmtpConfig,
    validate_email_parameters,
    validate_recipient,
)
