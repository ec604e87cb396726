#!/usr/bin/env python3
"""
Demo Data Seed Script for the EngageNatural dashboard

Creates a cross-referenced demo dataset:
- 1 Brand (fixed key, re-seeding merges into it)
- 2 Retailers
- Brand manager and staff accounts (Firebase Auth + user documents)
- 3 Trainings
- Sample programs and sample requests
- Announcements and 2 Communities
- Optionally training progress and community posts/comments/likes

Every document carries `demoSeed: true` so remove_demo_data can find it.

Usage:
    python -m app.demo.seed_demo_data
"""

import asyncio
import logging
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from app.config import OPERATOR_EMAIL, OPERATOR_PASSWORD, Settings, get_settings
from app.demo.batching import BatchSession
from app.demo.dataset import DemoDataset, default_dataset
from app.demo.errors import DemoDataError, StageWriteError
from app.demo.preflight import check_seed_permissions
from app.demo.provisioner import AccountSpec, IdentityProvisioner, ProvisionedAccount
from app.demo.references import ReferenceTable, UserRef
from app.demo.run import DemoRun, RunState
from app.demo.stages import Stage, StageContext, build_stages
from app.identity import FirebaseIdentityService, IdentityService
from app.store import DocumentStore, FirestoreDocumentStore

logger = logging.getLogger(__name__)


@dataclass
class SeedOptions:
    """Existing account ids to use instead of provisioning demo accounts."""

    brand_manager_id: Optional[str] = None
    staff_ids: List[str] = field(default_factory=list)


@dataclass
class SeedResult:
    counts: Dict[str, int]
    accounts: List[ProvisionedAccount] = field(default_factory=list)


class SeedPipeline:
    """Runs preflight, provisioning and the seed stages, strictly in order.

    A pipeline owns its ReferenceTable and BatchSession and is used for one
    run only.
    """

    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityService,
        settings: Settings,
        dataset: Optional[DemoDataset] = None,
        options: Optional[SeedOptions] = None,
        stages: Optional[List[Stage]] = None,
    ):
        self.store = store
        self.identity = identity
        self.settings = settings
        self.dataset = dataset or default_dataset()
        self.options = options or SeedOptions()
        self.stages = stages if stages is not None else build_stages(settings)
        self.refs = ReferenceTable()
        self.session = BatchSession(store, settings.batch_threshold)
        self.run = DemoRun("seed")

    def _supplied_ids(self) -> Dict[str, str]:
        """Map account email -> caller supplied id."""
        supplied = {}
        if self.options.brand_manager_id:
            supplied[self.dataset.brand_manager["email"]] = self.options.brand_manager_id
        for i, uid in enumerate(self.options.staff_ids):
            if i >= len(self.dataset.staff):
                logger.warning(f"Ignoring staff id {uid}: only {len(self.dataset.staff)} staff accounts in dataset")
                continue
            supplied[self.dataset.staff[i]["email"]] = uid
        return supplied

    def account_specs(self) -> List[AccountSpec]:
        """Accounts that still need provisioning."""
        supplied = self._supplied_ids()
        specs = []
        for account in [self.dataset.brand_manager] + self.dataset.staff:
            if account["email"] in supplied:
                continue
            specs.append(AccountSpec(
                email=account["email"],
                secret=account.get("password", self.settings.demo_account_password),
                display_name=account["display_name"],
            ))
        return specs

    def _record_accounts(self, provisioned: List[ProvisionedAccount]):
        names = {a["email"]: a["display_name"] for a in [self.dataset.brand_manager] + self.dataset.staff}
        for email, uid in self._supplied_ids().items():
            self.refs.accounts[email] = UserRef(uid, email, names[email])
        for account in provisioned:
            self.refs.accounts[account.email] = UserRef(
                account.external_id, account.email, account.display_name, account.is_placeholder
            )

    async def _run_stages(self, operator_id: str):
        ctx = StageContext(self.store, self.session, self.refs, self.dataset, self.settings, operator_id)
        completed = set()
        for stage in self.stages:
            missing = [d for d in stage.depends_on if d not in completed]
            if missing:
                raise RuntimeError(f"Stage '{stage.name}' scheduled before {', '.join(missing)}")
            self.run.advance(RunState.STAGE, stage.name)
            try:
                await stage.run(ctx)
            except StageWriteError:
                raise
            except Exception as e:
                raise StageWriteError(stage.name, e) from e
            completed.add(stage.name)

    async def execute(self, operator_id: str) -> SeedResult:
        try:
            self.run.advance(RunState.PREFLIGHT)
            await check_seed_permissions(self.store, operator_id, self.settings)

            self.run.advance(RunState.PROVISIONING)
            provisioned = await IdentityProvisioner(self.identity).provision(self.account_specs())
            self._record_accounts(provisioned)

            await self._run_stages(operator_id)
        except Exception as e:
            self.run.fail(e)
            raise

        self.run.advance(RunState.DONE)
        counts = dict(self.session.counts)
        logger.info(f"All demo data created: {counts}")
        return SeedResult(counts=counts, accounts=provisioned)


async def seed_demo_data(
    operator_id: str,
    options: Optional[SeedOptions] = None,
    *,
    store: DocumentStore,
    identity: IdentityService,
    settings: Optional[Settings] = None,
    dataset: Optional[DemoDataset] = None,
) -> SeedResult:
    """Seed the demo dataset on behalf of `operator_id`.

    `identity` is the operator's own signed-in service; demo accounts are
    created through an isolated copy of it.
    """
    pipeline = SeedPipeline(store, identity, settings or get_settings(), dataset, options)
    return await pipeline.execute(operator_id)


async def _seed_as_operator(settings: Settings) -> SeedResult:
    store = FirestoreDocumentStore(project=settings.project_id)
    identity = FirebaseIdentityService(settings.firebase_api_key, settings.auth_emulator_host)

    signed_in = await identity.sign_in(OPERATOR_EMAIL, OPERATOR_PASSWORD)
    if not signed_in.ok:
        print(f"ERROR: Operator sign-in failed: {signed_in.code}: {signed_in.message}")
        sys.exit(1)

    return await seed_demo_data(signed_in.user_id, store=store, identity=identity, settings=settings)


def main():
    settings = get_settings()
    print(f"\n{'=' * 60}")
    print("DEMO DATA SEED")
    print(f"{'=' * 60}")
    print(f"Project: {settings.project_id}")
    print(f"Operator: {OPERATOR_EMAIL or '(OPERATOR_EMAIL not set)'}\n")

    if not OPERATOR_EMAIL or not OPERATOR_PASSWORD:
        print("ERROR: Set OPERATOR_EMAIL and OPERATOR_PASSWORD to seed demo data.")
        sys.exit(1)

    try:
        result = asyncio.run(_seed_as_operator(settings))
    except DemoDataError as e:
        print(f"ERROR: {e.code}: {e.message}")
        sys.exit(1)

    print("\nCreated:")
    for name, count in result.counts.items():
        print(f"  {name}: {count}")
    placeholders = [a.email for a in result.accounts if a.is_placeholder]
    if placeholders:
        print("\nThese accounts exist with a different password and got placeholder UIDs:")
        for email in placeholders:
            print(f"  - {email}")
    print("\nDone! Demo data seeded.\n")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
