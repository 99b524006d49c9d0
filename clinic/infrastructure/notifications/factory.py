import logging

from ...application.ports.notifier import Notifier
from ...core.config import Settings
from .log_notifier import LogNotifier
from .smtp_notifier import SmtpNotifier

logger = logging.getLogger(__name__)


def build_notifier(settings: Settings) -> Notifier:
    """SMTP delivery when a host is configured, otherwise log-only."""
    if settings.smtp_configured:
        return SmtpNotifier(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            from_address=settings.EMAIL_FROM,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
        )
    logger.debug("SMTP_HOST not set; emails will be written to the log")
    return LogNotifier()
