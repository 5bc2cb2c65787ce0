"""Email one-time codes kept in the ``email_otp_codes`` table.

`functions_api.app` issues a code in ``/send-otp`` and consumes it in
``/verify-otp-signup``. A code is valid once and for ``OTP_TTL`` after issue;
issuing a new code removes any unused ones for the same email.
"""

import datetime
import secrets
from datetime import timezone
from typing import Callable, Optional

from functions_api.service_client import ServiceClient, eq, is_null

OTP_TABLE = "email_otp_codes"
OTP_TTL = datetime.timedelta(minutes=10)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(timezone.utc)


def generate_code() -> str:
    """Return a 6-digit numeric code in ``100000..999999``."""
    return str(100000 + secrets.randbelow(900000))


class OtpStore:
    def __init__(
        self,
        client: ServiceClient,
        *,
        clock: Callable[[], datetime.datetime] = utcnow,
        code_factory: Callable[[], str] = generate_code,
    ) -> None:
        self.client = client
        self.clock = clock
        self.code_factory = code_factory

    def issue(self, email: str) -> str:
        """Replace unused codes for ``email`` with a fresh one and return it."""
        address = email.strip().lower()
        code = self.code_factory()
        expires_at = self.clock() + OTP_TTL
        self.client.delete(OTP_TABLE, {"email": eq(address), "used_at": is_null()})
        self.client.insert(
            OTP_TABLE,
            {"email": address, "code": code, "expires_at": expires_at.isoformat()},
        )
        return code

    def consume(self, email: str, code: str) -> bool:
        """Mark a matching, unused and unexpired code as used.

        Returns
        -------
        bool
            ``True`` when a code was consumed.
        """
        address = email.strip().lower()
        now = self.clock()
        row = self.client.maybe_single(
            OTP_TABLE,
            {
                "email": eq(address),
                "code": eq(code.strip()),
                "used_at": is_null(),
                "expires_at": f"gt.{now.isoformat()}",
            },
        )
        if row is None or _expired(row.get("expires_at"), now):
            return False
        self.client.update(OTP_TABLE, {"id": eq(row["id"])}, {"used_at": now.isoformat()})
        return True


def _expired(raw: Optional[str], now: datetime.datetime) -> bool:
    if not raw:
        return True
    try:
        expires = datetime.datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return True
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return expires <= now
