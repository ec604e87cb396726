"""
Batch write orchestration for demo data.

Firestore commits a batch atomically but rejects any batch above
MAX_BATCH_OPERATIONS writes, failing the whole batch. A BatchSession collects
writes and commits whenever the open batch reaches a safety threshold below
that ceiling, so a stage of any size completes in several atomic commits.
"""
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.config import MAX_BATCH_OPERATIONS
from app.demo.errors import StageWriteError
from app.store import DocumentStore, WriteBatch

logger = logging.getLogger(__name__)

# Marker field carried by every demo document; teardown selects on it
DEMO_TAG_FIELD = "demoSeed"

SET = "set"
DELETE = "delete"


def tagged(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of `data` carrying the demo tag."""
    return {**data, DEMO_TAG_FIELD: True}


@dataclass
class WriteOp:
    collection: str
    key: str
    kind: str = SET
    data: Optional[Dict[str, Any]] = None
    merge: bool = False
    entity_type: Optional[str] = None

    @classmethod
    def set(cls, collection: str, key: str, data: Dict[str, Any], merge: bool = False,
            entity_type: Optional[str] = None) -> "WriteOp":
        return cls(collection, key, SET, data, merge, entity_type or collection)

    @classmethod
    def delete(cls, collection: str, key: str, entity_type: Optional[str] = None) -> "WriteOp":
        return cls(collection, key, DELETE, None, False, entity_type or collection)


class BatchSession:
    """Accumulates writes for one run and commits them under the threshold.

    Each run builds its own session. Writes commit in the order they were
    staged; `flush_final()` must close every stage so a partial batch is
    never left behind.
    """

    def __init__(self, store: DocumentStore, threshold: int = 400):
        if not 0 < threshold < MAX_BATCH_OPERATIONS:
            raise ValueError(
                f"threshold must be between 1 and {MAX_BATCH_OPERATIONS - 1}, got {threshold}"
            )
        self.store = store
        self.threshold = threshold
        self.stage_name = "unnamed"
        self.counts: Counter = Counter()
        self.commit_sizes: List[int] = []
        self._batch: Optional[WriteBatch] = None
        self._operation_count = 0
        self._pending: Counter = Counter()

    def begin_stage(self, name: str):
        if self._operation_count:
            raise RuntimeError(
                f"Stage '{self.stage_name}' left {self._operation_count} uncommitted writes"
            )
        self.stage_name = name

    @property
    def pending(self) -> int:
        return self._operation_count

    async def stage(self, op: WriteOp):
        """Add a write to the open batch, committing first if it is full."""
        if op.kind == SET and (op.data is None or op.data.get(DEMO_TAG_FIELD) is not True):
            raise ValueError(f"Refusing untagged write to {op.collection}/{op.key}")

        if self._batch is None:
            self._batch = self.store.batch()

        if op.kind == SET:
            self._batch.set(op.collection, op.key, op.data, merge=op.merge)
        elif op.kind == DELETE:
            self._batch.delete(op.collection, op.key)
        else:
            raise ValueError(f"Unknown write kind: {op.kind}")

        self._operation_count += 1
        self._pending[op.entity_type or op.collection] += 1
        await self.flush_if_needed()

    async def flush_if_needed(self) -> bool:
        if self._operation_count >= self.threshold:
            await self._commit()
            return True
        return False

    async def flush_final(self):
        """Commit whatever is left in the open batch."""
        if self._operation_count:
            await self._commit()

    async def _commit(self):
        batch, size = self._batch, self._operation_count
        pending = self._pending
        self._batch = None
        self._operation_count = 0
        self._pending = Counter()
        try:
            await batch.commit()
        except Exception as e:
            logger.error(f"Batch commit of {size} writes failed in stage '{self.stage_name}': {e}")
            raise StageWriteError(self.stage_name, e) from e
        self.commit_sizes.append(size)
        self.counts.update(pending)
        logger.info(f"Committed {size} writes for stage '{self.stage_name}'")
