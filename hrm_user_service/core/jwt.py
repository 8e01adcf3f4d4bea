from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from jose.utils import base64url_decode, base64url_encode

from hrm_user_service.core.config import Settings
from hrm_user_service.core.errors import (
    InvalidSignatureError,
    InvalidTokenError,
    MalformedTokenError,
    TokenExpiredError,
)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class AccessClaims:
    """Claims carried by an access token.

    ``permission_codes`` is the entitlement snapshot taken at issuance; it is
    not re-validated against the Permission service until the next refresh.
    """

    user_id: int
    employee_id: int | None
    org_id: int | None
    employee_status: str
    permission_codes: frozenset[str]
    issuer: str
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class RefreshClaims:
    user_id: int
    issuer: str
    issued_at: int
    expires_at: int


def _optional_int(payload: dict[str, Any], key: str) -> int | None:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedTokenError(f"Invalid token payload: {key} must be an integer")
    return value


def _check_signature_encoding(signature: str) -> None:
    """Reject signatures that are not canonical unpadded base64url.

    Flips in the unused low bits of the last character decode to the same digest.
    """
    try:
        raw = base64url_decode(signature.encode("ascii"))
    except ValueError as exc:
        raise InvalidSignatureError("Token signature is not valid base64url") from exc
    if not raw or base64url_encode(raw).decode("ascii") != signature:
        raise InvalidSignatureError("Token signature verification failed")


def _user_id(payload: dict[str, Any]) -> int:
    sub = payload.get("sub")
    try:
        return int(sub)
    except (TypeError, ValueError) as exc:
        raise MalformedTokenError("Invalid token payload: sub") from exc


class TokenCodec:
    """Encode and verify signed claims tokens with the process-wide secret."""

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.jwt_secret_key
        self._algorithm = settings.jwt_algorithm
        self._issuer = settings.jwt_issuer
        self.access_ttl = timedelta(minutes=settings.access_token_ttl_minutes)
        self.refresh_ttl = timedelta(minutes=settings.refresh_token_ttl_minutes)

    def _encode(self, claims: dict[str, Any], ttl: timedelta) -> str:
        now = datetime.now(tz=timezone.utc)
        to_encode: dict[str, Any] = {
            **claims,
            "iss": self._issuer,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(to_encode, self._secret, algorithm=self._algorithm)

    # PUBLIC_INTERFACE
    def sign_access_token(
        self,
        *,
        user_id: int,
        permission_codes: Iterable[str],
        employee_id: int | None = None,
        org_id: int | None = None,
        employee_status: str = "",
        ttl: timedelta | None = None,
    ) -> str:
        """Create a signed JWT access token.

        Args:
            user_id: Local user id (stored as the ``sub`` claim).
            permission_codes: Flattened permission codes; deduplicated and sorted.
            employee_id: HR employee id, if the user is an employee.
            org_id: HR organization id, if known.
            employee_status: Employee status string, ``""`` when absent.
            ttl: Lifetime override; defaults to the configured access TTL.

        Returns:
            Encoded JWT string.
        """
        claims = {
            "sub": str(user_id),
            "type": ACCESS_TOKEN_TYPE,
            "employee_id": employee_id,
            "org_id": org_id,
            "employee_status": employee_status,
            "perms": sorted(set(permission_codes)),
        }
        return self._encode(claims, self.access_ttl if ttl is None else ttl)

    # PUBLIC_INTERFACE
    def sign_refresh_token(self, user_id: int, ttl: timedelta | None = None) -> str:
        """Create a signed JWT refresh token carrying only the user id and issuer."""
        claims = {"sub": str(user_id), "type": REFRESH_TOKEN_TYPE}
        return self._encode(claims, self.refresh_ttl if ttl is None else ttl)

    # PUBLIC_INTERFACE
    def verify(self, token: str) -> dict[str, Any]:
        """Decode and validate a token, returning the raw payload.

        Raises:
            MalformedTokenError: the token cannot be parsed or a claim is mistyped.
            InvalidSignatureError: the signature does not verify or the issuer is foreign.
            TokenExpiredError: the token is past its ``exp``.
        """
        segments = token.split(".")
        if len(segments) != 3:
            raise MalformedTokenError("Malformed token: expected three segments")
        header, body, signature = segments
        try:
            # Claims are read without the signature segment.
            unverified = jwt.get_unverified_claims(f"{header}.{body}.")
        except JWTError as exc:
            raise MalformedTokenError("Malformed token") from exc
        missing = [key for key in ("sub", "exp", "iss") if key not in unverified]
        if missing:
            raise MalformedTokenError(f"Malformed token: missing {', '.join(missing)}")
        _check_signature_encoding(signature)
        if unverified["iss"] != self._issuer:
            raise InvalidSignatureError("Token issuer is not trusted")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
            )
        except ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except JWTClaimsError as exc:
            raise MalformedTokenError(f"Malformed token: {exc}") from exc
        except JWTError as exc:
            raise InvalidSignatureError("Token signature verification failed") from exc
        return payload

    # PUBLIC_INTERFACE
    def verify_access(self, token: str) -> AccessClaims:
        """Verify an access token and return its typed claims."""
        payload = self.verify(token)
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError("Invalid token type; expected 'access'")
        perms = payload.get("perms", [])
        if not isinstance(perms, list) or not all(isinstance(p, str) for p in perms):
            raise MalformedTokenError("Invalid token payload: perms")
        status = payload.get("employee_status") or ""
        if not isinstance(status, str):
            raise MalformedTokenError("Invalid token payload: employee_status")
        return AccessClaims(
            user_id=_user_id(payload),
            employee_id=_optional_int(payload, "employee_id"),
            org_id=_optional_int(payload, "org_id"),
            employee_status=status,
            permission_codes=frozenset(perms),
            issuer=payload["iss"],
            issued_at=payload.get("iat", 0),
            expires_at=payload["exp"],
        )

    # PUBLIC_INTERFACE
    def verify_refresh(self, token: str) -> RefreshClaims:
        """Verify a refresh token and return its typed claims."""
        payload = self.verify(token)
        if payload.get("type") != REFRESH_TOKEN_TYPE:
            raise InvalidTokenError("Invalid token type; expected 'refresh'")
        return RefreshClaims(
            user_id=_user_id(payload),
            issuer=payload["iss"],
            issued_at=payload.get("iat", 0),
            expires_at=payload["exp"],
        )
