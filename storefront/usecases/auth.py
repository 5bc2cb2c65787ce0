"""Sign-in, sign-out and OTP-verified sign-up."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from storefront.domain.entities import Session
from storefront.domain.ports import AuthPort, FunctionsPort, StoragePort, UseCaseError
from storefront.usecases.error_mapping import map_api_error

LOGGER = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    value = (email or "").strip().lower()
    if not value:
        raise UseCaseError("EMAIL_REQUIRED", "Email is required")
    if not _EMAIL_RE.match(value):
        raise UseCaseError("EMAIL_INVALID", "Please enter a valid email address")
    return value


@dataclass
class SignIn:
    auth: AuthPort
    storage: StoragePort

    def __call__(self, email: str, password: str) -> Session:
        address = normalize_email(email)
        if not password:
            raise UseCaseError("PASSWORD_REQUIRED", "Password is required")
        try:
            session = self.auth.sign_in(address, password)
        except Exception as exc:
            mapped = map_api_error(
                exc,
                default_code="SIGN_IN_FAILED",
                default_message="Invalid email or password",
            )
            if mapped.code == "REQUEST_FAILED":
                mapped = UseCaseError("SIGN_IN_FAILED", "Invalid email or password")
            raise mapped from exc
        self.storage.save_session(session)
        LOGGER.info("Signed in %s with roles %s", session.email, ",".join(session.roles) or "-")
        return session


@dataclass
class RestoreSession:
    """Reload the persisted session and hand its token to the transport."""

    auth: AuthPort
    storage: StoragePort

    def __call__(self) -> Optional[Session]:
        session = self.storage.load_session()
        if session is None:
            return None
        self.auth.set_access_token(session.access_token)
        try:
            self.auth.current_user()
        except Exception as exc:
            mapped = map_api_error(exc, default_code="SESSION_CHECK_FAILED")
            if mapped.code != "AUTH_FAILED":
                # offline start keeps the stored session
                LOGGER.warning("Could not verify stored session: %s", mapped.message)
                return session
            LOGGER.info("Stored session expired; signing out locally")
            self.auth.set_access_token(None)
            self.storage.save_session(None)
            return None
        return session


@dataclass
class SignOut:
    auth: AuthPort
    storage: StoragePort

    def __call__(self) -> None:
        try:
            self.auth.sign_out()
        except Exception as exc:
            # local session is always dropped
            LOGGER.warning("Remote sign-out failed: %s", exc)
        finally:
            self.storage.save_session(None)


@dataclass
class SendSignupOtp:
    functions: FunctionsPort

    def __call__(self, email: str, full_name: str = "") -> str:
        address = normalize_email(email)
        try:
            self.functions.send_otp(address, full_name.strip())
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="OTP_SEND_FAILED",
                default_message="Failed to send verification code",
            ) from exc
        return address


@dataclass
class VerifySignupOtp:
    functions: FunctionsPort

    def __call__(
        self,
        email: str,
        code: str,
        password: str,
        *,
        full_name: str = "",
        phone: Optional[str] = None,
    ) -> Dict[str, Any]:
        address = normalize_email(email)
        otp = (code or "").strip()
        if len(otp) != 6 or not otp.isdigit():
            raise UseCaseError("OTP_INVALID", "Please enter the 6-digit code")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise UseCaseError(
                "PASSWORD_TOO_SHORT",
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            )
        try:
            result = self.functions.verify_otp_signup(
                address,
                otp,
                password,
                full_name=full_name.strip(),
                phone=(phone or "").strip() or None,
            )
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="OTP_VERIFY_FAILED",
                default_message="Invalid or expired code",
            ) from exc
        if not result.get("ok"):
            raise UseCaseError("OTP_VERIFY_FAILED", "Invalid or expired code")
        return result


__all__ = [
    "RestoreSession",
    "SendSignupOtp",
    "SignIn",
    "SignOut",
    "VerifySignupOtp",
    "normalize_email",
]
