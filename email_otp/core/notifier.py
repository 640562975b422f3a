from __future__ import annotations

from typing import Protocol


class Notifier(Protocol):
    def send(self, address: str, subject: str, body_html: str) -> None:
        """Deliver one message; raise DeliveryError on failure."""
        ...
