"""JWT credential issuance and tri-state resolution.

resolve() never raises for bad input: it reports Present, Absent or
Invalid and lets the caller decide. Optional-auth paths ignore Absent and
Invalid; mandatory paths go through require(), which turns both into
errors.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import jwt

from .errors import InvalidCredential, MissingCredential
from .types import Principal

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


@dataclass(frozen=True)
class AuthSettings:
    """Signing configuration handed to the resolver at construction."""

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_days: int = 30


class CredentialStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    INVALID = "invalid"


@dataclass(frozen=True)
class CredentialResult:
    """Outcome of resolving a credential."""

    status: CredentialStatus
    principal: Optional[Principal] = None
    reason: Optional[str] = None

    @classmethod
    def present(cls, principal: Principal) -> "CredentialResult":
        return cls(CredentialStatus.PRESENT, principal=principal)

    @classmethod
    def absent(cls) -> "CredentialResult":
        return cls(CredentialStatus.ABSENT)

    @classmethod
    def invalid(cls, reason: str) -> "CredentialResult":
        return cls(CredentialStatus.INVALID, reason=reason)

    @property
    def is_present(self) -> bool:
        return self.status is CredentialStatus.PRESENT


class CredentialResolver:
    """Issue and verify HS256 bearer tokens whose subject is a user id.

    Holds only immutable settings, so a single instance can be shared by
    concurrent requests.
    """

    def __init__(self, settings: AuthSettings):
        self.settings = settings

    def issue(self, principal_id: str, expires_delta: timedelta | None = None) -> str:
        """Create a signed access token for a user.

        Args:
            principal_id: The user id stored in the ``sub`` claim
            expires_delta: Optional custom expiration time

        Returns:
            Encoded JWT token string
        """
        if expires_delta is None:
            expires_delta = timedelta(days=self.settings.access_token_expire_days)

        now = datetime.now(timezone.utc)
        payload = {
            "sub": principal_id,
            "exp": now + expires_delta,
            "iat": now,
        }
        return jwt.encode(payload, self.settings.secret_key, algorithm=self.settings.algorithm)

    def resolve(self, material: Optional[str]) -> CredentialResult:
        """Resolve raw credential material (a token, or an Authorization header value)."""
        token = self._extract_token(material)
        if token is None:
            return CredentialResult.absent()
        if not token:
            return CredentialResult.invalid("empty token")

        try:
            payload = jwt.decode(
                token,
                self.settings.secret_key,
                algorithms=[self.settings.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            return CredentialResult.invalid("expired")
        except jwt.InvalidTokenError as e:
            return CredentialResult.invalid(str(e) or type(e).__name__)

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            return CredentialResult.invalid("missing subject")

        return CredentialResult.present(Principal(id=subject))

    def require(self, material: Optional[str]) -> Principal:
        """Resolve a credential on a path where one is mandatory.

        Raises:
            MissingCredential: no credential material was supplied
            InvalidCredential: the credential failed verification
        """
        result = self.resolve(material)
        if result.status is CredentialStatus.ABSENT:
            raise MissingCredential()
        if result.status is CredentialStatus.INVALID:
            logger.info(f"Rejected credential: {result.reason}")
            raise InvalidCredential()
        return result.principal

    @staticmethod
    def _extract_token(material: Optional[str]) -> Optional[str]:
        """Strip an optional Bearer prefix.

        Returns None for blank material and "" for a Bearer scheme with no token.
        """
        token = (material or "").strip()
        if not token:
            return None
        scheme, _, rest = token.partition(" ")
        if scheme.lower() == BEARER_SCHEME:
            return rest.strip()
        return token
