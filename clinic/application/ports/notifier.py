from typing import Protocol


class Notifier(Protocol):
    def send(self, email: str, subject: str, message: str) -> bool:
        ...
