"""
Identity service access.

`IdentityService` is the account surface the demo tooling needs: create an
account, sign in, sign out, and report who is signed in. Every call returns an
`IdentityResult` whose `outcome` is already classified, so callers branch on
the enum instead of on provider error strings.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_HOST = "https://identitytoolkit.googleapis.com"


class IdentityOutcome(str, Enum):
    OK = "ok"
    EMAIL_EXISTS = "email_exists"
    INVALID_CREDENTIAL = "invalid_credential"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class IdentityResult:
    outcome: IdentityOutcome
    user_id: Optional[str] = None
    code: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == IdentityOutcome.OK


@dataclass
class IdentitySession:
    """Signed-in state of one authentication context."""

    user_id: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None

    def clear(self):
        self.user_id = None
        self.id_token = None
        self.refresh_token = None


class IdentityService(ABC):
    """Base class for identity service adapters."""

    def __init__(self, session: Optional[IdentitySession] = None):
        self.session = session or IdentitySession()

    @property
    def current_user_id(self) -> Optional[str]:
        return self.session.user_id

    @abstractmethod
    async def create_account(self, email: str, secret: str) -> IdentityResult:
        ...

    @abstractmethod
    async def sign_in(self, email: str, secret: str) -> IdentityResult:
        ...

    async def sign_out(self):
        self.session.clear()

    @abstractmethod
    def isolated(self) -> "IdentityService":
        """Return a service bound to a fresh, empty session."""


# Provider error codes grouped by outcome
_ERROR_OUTCOMES = {
    "EMAIL_EXISTS": IdentityOutcome.EMAIL_EXISTS,
    "INVALID_PASSWORD": IdentityOutcome.INVALID_CREDENTIAL,
    "INVALID_LOGIN_CREDENTIALS": IdentityOutcome.INVALID_CREDENTIAL,
    "INVALID_CREDENTIAL": IdentityOutcome.INVALID_CREDENTIAL,
    "EMAIL_NOT_FOUND": IdentityOutcome.NOT_FOUND,
    "USER_DISABLED": IdentityOutcome.NOT_FOUND,
}


def classify_error_code(code: str) -> IdentityOutcome:
    """Map an Identity Toolkit error code to an outcome."""
    return _ERROR_OUTCOMES.get(code, IdentityOutcome.ERROR)


def _parse_error(response: httpx.Response) -> IdentityResult:
    """Build a failed result from an Identity Toolkit error response.

    Error messages look like "EMAIL_EXISTS" or
    "WEAK_PASSWORD : Password should be at least 6 characters".
    """
    try:
        message = response.json().get("error", {}).get("message", "")
    except ValueError:
        message = response.text
    code = message.split(":", 1)[0].strip() or f"HTTP_{response.status_code}"
    return IdentityResult(
        outcome=classify_error_code(code),
        code=code,
        message=message or f"Identity service returned {response.status_code}",
    )


class FirebaseIdentityService(IdentityService):
    """Firebase Authentication through the Identity Toolkit REST API.

    When `emulator_host` is set (FIREBASE_AUTH_EMULATOR_HOST), requests go to
    the local Auth emulator instead of Google.
    """

    def __init__(
        self,
        api_key: str,
        emulator_host: str = "",
        session: Optional[IdentitySession] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(session)
        self.api_key = api_key
        self.emulator_host = emulator_host
        self.timeout = timeout
        self.transport = transport

    def _url(self, method: str) -> str:
        if self.emulator_host:
            base = f"http://{self.emulator_host}/identitytoolkit.googleapis.com"
        else:
            base = IDENTITY_TOOLKIT_HOST
        return f"{base}/v1/accounts:{method}"

    async def _call(self, method: str, email: str, secret: str) -> IdentityResult:
        payload = {"email": email, "password": secret, "returnSecureToken": True}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self._url(method), params={"key": self.api_key}, json=payload
                )
        except httpx.HTTPError as e:
            logger.error(f"Identity service request {method} failed for {email}: {e}")
            return IdentityResult(
                outcome=IdentityOutcome.ERROR,
                code=type(e).__name__,
                message=str(e),
            )

        if response.status_code != 200:
            return _parse_error(response)

        try:
            data = response.json()
            user_id = data["localId"]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Identity service {method} returned an unreadable body for {email}: {e!r}")
            return IdentityResult(
                outcome=IdentityOutcome.ERROR,
                code="INVALID_RESPONSE",
                message=f"Identity service {method} response has no localId",
            )

        self.session.user_id = user_id
        self.session.id_token = data.get("idToken")
        self.session.refresh_token = data.get("refreshToken")
        return IdentityResult(outcome=IdentityOutcome.OK, user_id=user_id)

    async def create_account(self, email: str, secret: str) -> IdentityResult:
        return await self._call("signUp", email, secret)

    async def sign_in(self, email: str, secret: str) -> IdentityResult:
        return await self._call("signInWithPassword", email, secret)

    def isolated(self) -> "FirebaseIdentityService":
        return FirebaseIdentityService(
            api_key=self.api_key,
            emulator_host=self.emulator_host,
            timeout=self.timeout,
            transport=self.transport,
        )
