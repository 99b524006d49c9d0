import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..ports.notifier import Notifier

logger = logging.getLogger(__name__)


@dataclass
class NotificationDispatcher:
    """Delivers best-effort emails after the triggering write has committed.

    When ``schedule`` is set (e.g. ``BackgroundTasks.add_task``) delivery is
    deferred to it; otherwise it runs inline. Delivery never raises.
    """

    notifier: Notifier
    schedule: Optional[Callable[..., None]] = None
    enabled: bool = True

    def dispatch(self, email: Optional[str], subject: str, message: str) -> None:
        if not self.enabled:
            return
        if not email:
            logger.warning(f"Skipping '{subject}' notification: recipient has no email address")
            return
        if self.schedule is not None:
            self.schedule(self.deliver, email, subject, message)
        else:
            self.deliver(email, subject, message)

    def deliver(self, email: str, subject: str, message: str) -> bool:
        try:
            ok = self.notifier.send(email, subject, message)
        except Exception as e:
            logger.warning(f"Notification '{subject}' to {email} failed: {e}")
            return False
        if not ok:
            logger.warning(f"Notification '{subject}' to {email} was not accepted by the notifier")
            return False
        return True
