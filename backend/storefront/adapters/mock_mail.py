import logging
from typing import Dict, List

log = logging.getLogger("mail")


class MockMailAdapter:
    """Keeps sent messages in ``outbox`` instead of delivering them."""

    def __init__(self, sender: str = "shop@example.com"):
        self.sender = sender
        self.outbox: List[Dict] = []

    def send(self, to: str, subject: str, html: str):
        self.outbox.append({"from": self.sender, "to": to, "subject": subject, "html": html})
        log.info("mock mail to=%s subject=%r", to, subject)
