"""
Tests for the demo seed pipeline.

Covers idempotent brand re-seeding, demo tag completeness, referential
integrity between stages, stage failure semantics, caller-supplied account
ids, the optional stages, and the end-to-end seed/reset scenario.
"""

import copy

import pytest

from app.config import Settings
from app.demo.batching import DEMO_TAG_FIELD
from app.demo.dataset import DEMO_BRAND, default_dataset
from app.demo.errors import IdentityProvisioningError, PermissionDenied, StageWriteError
from app.demo.provisioner import is_placeholder_id
from app.demo.remove_demo_data import reset_demo_data
from app.demo.run import RunState
from app.demo.seed_demo_data import SeedOptions, SeedPipeline, seed_demo_data
from app.demo.stages import Stage, seed_samples, seed_users, slugify
from app.identity import IdentityOutcome, IdentityResult
from tests.fakes import OPERATOR_ID, StoreError


def _snapshot(store):
    return {c: set(docs) for c, docs in store.docs.items()}


class TestSlugify:
    """Tests for slugify function."""

    def test_basic(self):
        """Punctuation is dropped and spaces become dashes."""
        assert slugify("Hello World!") == "hello-world"

    def test_collapses_separators(self):
        """Runs of separators collapse to one dash."""
        assert slugify("  Rescue -- Drops   101 ") == "rescue-drops-101"


class TestSeedCounts:
    """Tests for seed result counts."""

    @pytest.mark.asyncio
    async def test_default_dataset_counts(self, store, identity, settings):
        """The default dataset reports one count per entity type."""
        result = await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        assert result.counts == {
            "brands": 1,
            "retailers": 2,
            "brand_managers": 1,
            "staff": 2,
            "trainings": 3,
            "sample_programs": 2,
            "sample_requests": 2,
            "announcements": 2,
            "communities": 2,
        }

    @pytest.mark.asyncio
    async def test_small_threshold_keeps_every_commit_under_it(self, store, identity):
        """A small threshold splits stages into small commits."""
        settings = Settings(batch_threshold=2)
        result = await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        assert all(len(commit) <= 2 for commit in store.commits)
        assert result.counts["trainings"] == 3
        assert len(store.tagged("trainings")) == 3


class TestIdempotentBrand:
    """Tests for re-seeding."""

    @pytest.mark.asyncio
    async def test_reseed_keeps_single_brand(self, store, identity, settings):
        """Re-seeding merges into the one demo brand."""
        await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)
        await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        assert list(store.tagged("brands")) == [DEMO_BRAND["id"]]
        # Fixed keys merge, generated keys accumulate
        assert len(store.tagged("communities")) == 2
        assert len(store.tagged("retailers")) == 4

    @pytest.mark.asyncio
    async def test_reseed_reuses_accounts(self, store, identity, identity_backend, settings):
        """Re-seeding signs in to the accounts it created before."""
        first = await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)
        second = await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        assert [a.external_id for a in first.accounts] == [a.external_id for a in second.accounts]
        assert len(store.tagged("users")) == 3


class TestTagCompleteness:
    """Tests for the demo tag on seeded documents."""

    @pytest.mark.asyncio
    async def test_every_new_document_is_tagged(self, store, identity):
        """Every document a seed writes carries the tag."""
        settings = Settings(seed_training_progress=True, seed_community_content=True)
        before = _snapshot(store)

        await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        for collection, docs in store.docs.items():
            for key, data in docs.items():
                if key in before.get(collection, set()):
                    continue
                assert data.get(DEMO_TAG_FIELD) is True, f"{collection}/{key} is untagged"

    @pytest.mark.asyncio
    async def test_brand_points_at_brand_manager(self, store, identity, identity_backend, settings):
        """The brand is owned by the brand manager account."""
        await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        bm_uid = identity_backend.accounts["bm.demo@engagenatural.com"][0]
        brand = store.collection("brands")[DEMO_BRAND["id"]]
        assert brand["ownerId"] == bm_uid
        assert store.collection("users")[bm_uid]["role"] == "brand_manager"


class TestReferentialIntegrity:
    """Tests for keys shared between stages."""

    @pytest.mark.asyncio
    async def test_sample_requests_reference_seeded_documents(self, store, identity, settings):
        """Sample requests point at seeded retailers, programs and staff."""
        await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        retailers = store.tagged("retailers")
        programs = store.tagged("sample_programs")
        users = store.tagged("users")
        requests = store.tagged("sample_requests")
        assert requests
        for request in requests.values():
            assert request["retailerId"] in retailers
            assert request["programId"] in programs
            assert request["userId"] in users
            assert users[request["userId"]]["role"] == "staff"
            assert request["status"] in {"pending", "approved", "shipped", "denied"}

    @pytest.mark.asyncio
    async def test_staff_and_trainings_reference_seeded_documents(self, store, identity, settings):
        """Staff and trainings point at seeded documents."""
        await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        retailers = store.tagged("retailers")
        users = store.tagged("users")
        for user in users.values():
            if user["role"] == "staff":
                assert user["retailerId"] in retailers
                assert user["storeCode"] == retailers[user["retailerId"]]["storeCode"]
        for training in store.tagged("trainings").values():
            assert training["authorUid"] in users
            assert training["metrics"] == {"enrolled": 0, "completed": 0}
            assert [s["order"] for s in training["sections"]] == list(range(len(training["sections"])))

    @pytest.mark.asyncio
    async def test_referenced_collections_commit_first(self, store, identity, settings):
        """Referenced documents commit before their referrers."""
        await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        first_commit = {}
        for position, commit in enumerate(store.commits):
            for _, collection, _ in commit:
                first_commit.setdefault(collection, position)
        assert first_commit["brands"] < first_commit["retailers"] < first_commit["users"]
        assert first_commit["users"] < first_commit["trainings"]
        assert first_commit["sample_programs"] < first_commit["sample_requests"]
        assert first_commit["sample_requests"] < first_commit["announcements"]

    @pytest.mark.asyncio
    async def test_announcement_scoping(self, store, identity, settings):
        """One announcement is broadcast, one scoped to a retailer."""
        await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        retailers = store.tagged("retailers")
        announcements = list(store.tagged("announcements").values())
        broadcast = [a for a in announcements if "retailerIds" not in a]
        scoped = [a for a in announcements if "retailerIds" in a]
        assert len(broadcast) == 1
        assert len(scoped) == 1
        assert all(r in retailers for r in scoped[0]["retailerIds"])

    @pytest.mark.asyncio
    async def test_stage_reading_unwritten_key_fails(self, store, identity, settings):
        """A stage reading an unrecorded key fails with its name."""
        pipeline = SeedPipeline(store, identity, settings, stages=[Stage("samples", seed_samples)])

        with pytest.raises(StageWriteError) as exc_info:
            await pipeline.execute(OPERATOR_ID)

        assert exc_info.value.stage == "samples"
        assert exc_info.value.code == "missing-reference"
        assert store.tagged("sample_programs") == {}

    @pytest.mark.asyncio
    async def test_out_of_order_stage_list_rejected(self, store, identity, settings):
        """A stage scheduled before its dependencies is refused."""
        pipeline = SeedPipeline(store, identity, settings, stages=[Stage("users", seed_users, ["brand", "retailers"])])

        with pytest.raises(RuntimeError):
            await pipeline.execute(OPERATOR_ID)
        assert store.tagged("users") == {}


class TestFailures:
    """Tests for failed seed runs."""

    @pytest.mark.asyncio
    async def test_preflight_failure_has_no_side_effects(self, store, identity, identity_backend, settings):
        """A failed preflight writes nothing and provisions nothing."""
        store.docs["users"][OPERATOR_ID]["role"] = "brand_manager"
        before = copy.deepcopy(store.docs)
        pipeline = SeedPipeline(store, identity, settings)

        with pytest.raises(PermissionDenied):
            await pipeline.execute(OPERATOR_ID)

        assert store.docs == before
        assert identity_backend.calls == []
        assert pipeline.run.state == RunState.FAILED
        assert pipeline.run.step is None

    @pytest.mark.asyncio
    async def test_stage_failure_keeps_earlier_stages(self, store, identity, settings):
        """A failed stage leaves earlier stages written."""
        store.fail_commit = lambda kind, collection, key: collection == "trainings"
        pipeline = SeedPipeline(store, identity, settings)

        with pytest.raises(StageWriteError) as exc_info:
            await pipeline.execute(OPERATOR_ID)

        error = exc_info.value
        assert error.stage == "trainings"
        assert error.code == "PERMISSION_DENIED"
        assert isinstance(error.__cause__, StoreError)
        assert pipeline.run.state == RunState.FAILED
        assert pipeline.run.step == "trainings"
        assert len(store.tagged("brands")) == 1
        assert len(store.tagged("retailers")) == 2
        assert len(store.tagged("users")) == 3
        assert store.tagged("trainings") == {}
        assert store.tagged("sample_programs") == {}

    @pytest.mark.asyncio
    async def test_provisioning_failure_aborts_before_stages(self, store, identity, identity_backend, settings):
        """A failed account stops the run before any stage."""
        identity_backend.create_errors["staff2.demo@engagenatural.com"] = IdentityResult(
            IdentityOutcome.ERROR, code="OPERATION_NOT_ALLOWED", message="OPERATION_NOT_ALLOWED"
        )

        with pytest.raises(IdentityProvisioningError):
            await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        assert store.total_tagged() == 0


class TestSeedOptions:
    """Tests for caller-supplied account ids."""

    @pytest.mark.asyncio
    async def test_supplied_ids_replace_provisioning(self, store, identity, identity_backend, settings):
        """Supplied ids are used instead of provisioning."""
        options = SeedOptions(brand_manager_id="bm-existing", staff_ids=["staff-existing"])

        await seed_demo_data(OPERATOR_ID, options, store=store, identity=identity, settings=settings)

        provisioned_emails = {email for kind, email in identity_backend.calls if kind == "create"}
        assert provisioned_emails == {"staff2.demo@engagenatural.com"}
        users = store.tagged("users")
        assert users["bm-existing"]["role"] == "brand_manager"
        assert users["staff-existing"]["role"] == "staff"
        assert store.collection("brands")[DEMO_BRAND["id"]]["ownerId"] == "bm-existing"

    @pytest.mark.asyncio
    async def test_extra_staff_ids_ignored(self, store, identity, settings):
        """Staff ids beyond the dataset are ignored."""
        options = SeedOptions(staff_ids=["s1", "s2", "s3"])

        result = await seed_demo_data(OPERATOR_ID, options, store=store, identity=identity, settings=settings)

        assert result.counts["staff"] == 2
        assert "s3" not in store.collection("users")


class TestOptionalStages:
    """Tests for the optional stages."""

    @pytest.mark.asyncio
    async def test_off_by_default(self, store, identity, settings):
        """Optional stages write nothing unless enabled."""
        result = await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)
        for name in ("training_progress", "community_posts", "community_comments", "community_likes"):
            assert name not in result.counts
            assert store.tagged(name) == {}

    @pytest.mark.asyncio
    async def test_training_progress_only(self, store, identity):
        """Training progress is one record per staff per training."""
        settings = Settings(seed_training_progress=True)
        result = await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        assert result.counts["training_progress"] == 6
        assert "community_posts" not in result.counts
        trainings = store.tagged("trainings")
        for progress in store.tagged("training_progress").values():
            assert progress["trainingId"] in trainings

    @pytest.mark.asyncio
    async def test_community_content(self, store, identity):
        """Posts, comments and likes are seeded together."""
        settings = Settings(seed_community_content=True)
        result = await seed_demo_data(OPERATOR_ID, store=store, identity=identity, settings=settings)

        assert result.counts["community_posts"] == 3
        assert result.counts["community_comments"] == 6
        assert result.counts["community_likes"] == 6
        posts = store.tagged("community_posts")
        for comment in store.tagged("community_comments").values():
            assert comment["postId"] in posts


class TestSeedResetScenario:
    """Tests for a seed followed by a reset."""

    @pytest.mark.asyncio
    async def test_colliding_staff_secret_then_full_reset(self, store, identity, identity_backend, settings):
        """A placeholder staff account is seeded and fully reset."""
        dataset = default_dataset()
        dataset.staff = [
            {"email": f"staff{i}.demo@engagenatural.com", "display_name": f"Staff {i}"}
            for i in range(4)
        ]
        identity_backend.add_account("staff0.demo@engagenatural.com", "not-the-demo-password")

        result = await seed_demo_data(
            OPERATOR_ID, store=store, identity=identity, settings=settings, dataset=dataset
        )

        assert result.counts["staff"] == 4
        staff_keys = [k for k, d in store.tagged("users").items() if d["role"] == "staff"]
        assert len(staff_keys) == 4
        assert sum(1 for k in staff_keys if is_placeholder_id(k)) == 1
        assert identity.current_user_id == OPERATOR_ID

        deleted = await reset_demo_data(store=store, settings=settings)

        assert deleted.deleted["users"] == 5
        assert deleted.deleted["retailers"] == 2
        assert deleted.deleted["brands"] == 1
        assert deleted.total == sum(result.counts.values())
        assert store.total_tagged() == 0
        # Real documents survive
        assert set(store.collection("users")) == {OPERATOR_ID, "real-staff", "flagged-false"}
        assert set(store.collection("brands")) == {"real-brand"}
        assert set(store.collection("retailers")) == {"real-retailer"}
