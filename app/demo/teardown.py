"""
Tag-scoped teardown of demo data.

Only documents whose demo tag is true are ever selected, page by page, and
deleted in batches under the same threshold the seeder uses. Collections are
torn down concurrently; within a collection pages are processed one after
another so memory stays bounded by the page size.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from app.demo.batching import DEMO_TAG_FIELD, BatchSession, WriteOp
from app.demo.errors import StageWriteError, TeardownCollectionError, TeardownError
from app.store import DocumentStore

logger = logging.getLogger(__name__)

# Every collection a seed run can write, optional stages included
DEMO_COLLECTIONS = [
    "brands",
    "retailers",
    "users",
    "trainings",
    "training_progress",
    "sample_programs",
    "sample_requests",
    "announcements",
    "communities",
    "community_posts",
    "community_comments",
    "community_likes",
]


@dataclass
class TeardownResult:
    deleted: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.deleted.values())


class TeardownEngine:
    def __init__(self, store: DocumentStore, threshold: int = 400, page_size: int = 400):
        self.store = store
        self.threshold = threshold
        self.page_size = page_size

    async def teardown_collection(self, collection: str, deleted: Dict[str, int]):
        """Delete every tagged document in `collection`.

        `deleted[collection]` is kept current after each commit so a failure
        still reports what was removed.
        """
        session = BatchSession(self.store, self.threshold)
        session.begin_stage(collection)
        deleted[collection] = 0
        cursor: Optional[str] = None

        while True:
            keys = await self.store.query_tagged(
                collection, DEMO_TAG_FIELD, True, self.page_size, start_after=cursor
            )
            if not keys:
                break
            try:
                for key in keys:
                    await session.stage(WriteOp.delete(collection, key))
                await session.flush_final()
            finally:
                deleted[collection] = session.counts[collection]
            if len(keys) < self.page_size:
                break
            cursor = keys[-1]

        if deleted[collection]:
            logger.info(f"  Deleted {deleted[collection]} demo documents from {collection}")
        else:
            logger.info(f"  No demo documents found in {collection}")

    async def _attempt(self, collection: str, deleted: Dict[str, int]) -> Optional[TeardownCollectionError]:
        try:
            await self.teardown_collection(collection, deleted)
        except StageWriteError as e:
            return TeardownCollectionError(collection, e.cause)
        except Exception as e:
            return TeardownCollectionError(collection, e)
        return None

    async def run(self, collections: List[str]) -> TeardownResult:
        """Tear down every collection, then raise the first failure if any."""
        deleted: Dict[str, int] = {}
        outcomes = await asyncio.gather(*(self._attempt(c, deleted) for c in collections))
        errors = [e for e in outcomes if e is not None]
        # Report in the caller's collection order
        ordered = {c: deleted.get(c, 0) for c in collections}
        if errors:
            for error in errors:
                logger.error(f"Teardown of {error.collection} failed: {error.message}")
            raise TeardownError(errors, ordered)
        return TeardownResult(deleted=ordered)
