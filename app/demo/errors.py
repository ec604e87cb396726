"""Errors raised by the demo data seeder and teardown."""
from dataclasses import dataclass
from typing import Dict, List, Optional


def diagnostic_code(exc: BaseException) -> str:
    """Best-effort diagnostic code for a store or service exception."""
    # google.api_core exceptions: grpc StatusCode first, then the HTTP status
    grpc_code = getattr(exc, "grpc_status_code", None)
    if grpc_code is not None:
        return grpc_code.name
    code = getattr(exc, "code", None)
    if code is None:
        return type(exc).__name__
    return str(getattr(code, "name", None) or code)


def diagnostic_message(exc: BaseException) -> str:
    return getattr(exc, "message", None) or str(exc) or type(exc).__name__


class DemoDataError(Exception):
    """Base class for demo data failures. Carries a `code` and a `message`."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}


class PermissionDenied(DemoDataError):
    """The operator cannot write or delete demo data."""


@dataclass
class ProvisionFailure:
    email: str
    code: Optional[str]
    message: Optional[str]

    def __str__(self):
        return f"{self.email}: {self.code or 'error'} ({self.message or 'no details'})"


class IdentityProvisioningError(DemoDataError):
    def __init__(self, failures: List[ProvisionFailure], message: Optional[str] = None):
        self.failures = failures
        if message is None:
            message = "Could not provision demo accounts: " + "; ".join(str(f) for f in failures)
        code = failures[0].code if failures and failures[0].code else "identity-provisioning-failed"
        super().__init__(code, message)


class MissingReferenceError(DemoDataError):
    """A stage asked for a key that no earlier stage produced."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__("missing-reference", f"No '{kind}' reference recorded by an earlier stage")


class StageWriteError(DemoDataError):
    def __init__(self, stage: str, cause: BaseException):
        self.stage = stage
        self.cause = cause
        super().__init__(
            getattr(cause, "code", None) if isinstance(cause, DemoDataError) else diagnostic_code(cause),
            f"Stage '{stage}' failed: {diagnostic_message(cause)}",
        )


class TeardownCollectionError(DemoDataError):
    def __init__(self, collection: str, cause: BaseException):
        self.collection = collection
        self.cause = cause
        super().__init__(
            diagnostic_code(cause),
            f"Failed to delete demo documents from {collection}: {diagnostic_message(cause)}",
        )


class TeardownError(DemoDataError):
    """One or more collections failed during teardown.

    `code` and `message` come from the first failing collection; `deleted`
    holds whatever was removed before and around the failures.
    """

    def __init__(self, errors: List[TeardownCollectionError], deleted: Dict[str, int]):
        self.errors = errors
        self.deleted = deleted
        first = errors[0]
        super().__init__(first.code, first.message)
