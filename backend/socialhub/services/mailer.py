"""Outbound email seam.

Delivery itself (SMTP, provider APIs, templating) lives outside this
service; the backend only hands over the recipient, subject and the OTP.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OtpMessage:
    to: str
    subject: str
    first_name: str
    otp: str


class Mailer(Protocol):
    async def send_otp(self, message: OtpMessage) -> None: ...


class LogMailer:
    """Mailer that only records that a message was queued.

    The passcode is never written to the log.
    """

    async def send_otp(self, message: OtpMessage) -> None:
        logger.info(f"OTP email queued for {message.to}: {message.subject}")


_mailer: Mailer = LogMailer()


def get_mailer() -> Mailer:
    """Dependency returning the process-wide mailer."""
    return _mailer
