"""
Demo account provisioning.

Accounts are created through an isolated authentication context so the
operator's own session is never replaced. Each account walks a small state
machine:

    create OK                -> CREATED
    create failed            -> try sign-in
    sign-in OK               -> SIGNED_IN
    email exists and sign-in
    wrong credential         -> PLACEHOLDER (run continues with a fake id)
    anything else            -> FATAL
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from app.demo.errors import IdentityProvisioningError, ProvisionFailure
from app.identity import IdentityOutcome, IdentityResult, IdentityService

logger = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "EXISTING_ACCOUNT_"


class ProvisionState(str, Enum):
    CREATED = "created"
    SIGNED_IN = "signed_in"
    PLACEHOLDER = "placeholder"
    FATAL = "fatal"


@dataclass
class AccountSpec:
    email: str
    secret: str
    display_name: str


@dataclass
class ProvisionedAccount:
    external_id: str
    email: str
    display_name: str
    state: ProvisionState

    @property
    def is_placeholder(self) -> bool:
        return self.state == ProvisionState.PLACEHOLDER


def placeholder_id(email: str) -> str:
    """Synthesize a clearly fake account id for `email`."""
    token = email.replace("@", "_").replace(".", "_").upper()
    return f"{PLACEHOLDER_PREFIX}{token}_{int(time.time() * 1000)}"


def is_placeholder_id(value: str) -> bool:
    return value.startswith(PLACEHOLDER_PREFIX)


class IdentityProvisioner:
    def __init__(self, primary: IdentityService):
        self.primary = primary

    async def _provision_one(self, context: IdentityService, spec: AccountSpec):
        """Return (state, user id or None, failing result or None)."""
        created = await context.create_account(spec.email, spec.secret)
        if created.ok:
            await context.sign_out()
            return ProvisionState.CREATED, created.user_id, None

        if created.outcome != IdentityOutcome.EMAIL_EXISTS:
            logger.warning(f"Creating {spec.email} failed ({created.code}), trying sign-in")
        else:
            logger.info(f"Account {spec.email} already exists, signing in to retrieve UID")

        signed_in = await context.sign_in(spec.email, spec.secret)
        if signed_in.ok:
            await context.sign_out()
            return ProvisionState.SIGNED_IN, signed_in.user_id, None

        # Email enumeration protection reports unknown emails as bad credentials too
        if (
            created.outcome == IdentityOutcome.EMAIL_EXISTS
            and signed_in.outcome == IdentityOutcome.INVALID_CREDENTIAL
        ):
            logger.warning(
                f"Account {spec.email} exists with a different password; "
                f"continuing with a placeholder UID"
            )
            return ProvisionState.PLACEHOLDER, placeholder_id(spec.email), None

        return ProvisionState.FATAL, None, _worst(created, signed_in)

    async def provision(self, specs: List[AccountSpec]) -> List[ProvisionedAccount]:
        """Create or adopt an account for every spec.

        Raises IdentityProvisioningError listing every account that could not
        be resolved, or when the operator's session changed underneath us.
        """
        operator_before = self.primary.current_user_id
        context = self.primary.isolated()
        accounts: List[ProvisionedAccount] = []
        failures: List[ProvisionFailure] = []

        try:
            for spec in specs:
                state, user_id, failed = await self._provision_one(context, spec)
                if state == ProvisionState.FATAL:
                    logger.error(f"Could not provision {spec.email}: {failed.code} {failed.message}")
                    failures.append(ProvisionFailure(spec.email, failed.code, failed.message))
                    continue
                accounts.append(ProvisionedAccount(user_id, spec.email, spec.display_name, state))
                logger.info(f"  {state.value}: {spec.email} -> {user_id}")
        finally:
            if context.current_user_id is not None:
                await context.sign_out()

        operator_after = self.primary.current_user_id
        if operator_after != operator_before:
            raise IdentityProvisioningError(
                failures,
                message=(
                    f"Operator session changed during provisioning "
                    f"({operator_before} -> {operator_after})"
                ),
            )
        if failures:
            raise IdentityProvisioningError(failures)

        logger.info(f"Created/verified {len(accounts)} demo accounts")
        return accounts


def _worst(created: IdentityResult, signed_in: IdentityResult) -> IdentityResult:
    """Pick the result that best explains a fatal outcome."""
    if created.outcome not in (IdentityOutcome.OK, IdentityOutcome.EMAIL_EXISTS):
        return created
    return signed_in
