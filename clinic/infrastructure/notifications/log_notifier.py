import json
import logging
from datetime import datetime, timezone

from ...application.ports.notifier import Notifier


class LogNotifier(Notifier):
    """Writes outgoing emails to the log instead of delivering them."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def send(self, email: str, subject: str, message: str) -> bool:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "to": email,
            "subject": subject,
            "message": message,
        }
        self._logger.info(f"EMAIL: {json.dumps(entry)}")
        return True
