"""
Document store access for the demo data tooling.

The demo seeder only needs a handful of operations from the backing store:
keyed reads, create/merge writes, deletes, tag-filtered paging and atomic
write batches. `DocumentStore` describes that surface and
`FirestoreDocumentStore` implements it on top of the async Firestore client.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter


class WriteBatch(ABC):
    """A set of writes committed atomically."""

    @abstractmethod
    def set(self, collection: str, key: str, data: Dict[str, Any], merge: bool = False):
        ...

    @abstractmethod
    def delete(self, collection: str, key: str):
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...

    @abstractmethod
    async def commit(self):
        ...


class DocumentStore(ABC):
    """Operations the demo tooling consumes from the document database."""

    @abstractmethod
    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        """Return the document's data, or None when it does not exist."""

    @abstractmethod
    async def set(self, collection: str, key: str, data: Dict[str, Any], merge: bool = False):
        ...

    @abstractmethod
    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document under a store-generated key and return the key."""

    @abstractmethod
    async def delete(self, collection: str, key: str):
        ...

    @abstractmethod
    async def query_tagged(
        self,
        collection: str,
        field: str,
        value: Any,
        page_size: int,
        start_after: Optional[str] = None,
    ) -> List[str]:
        """Return one page of keys whose `field` equals `value`, ordered by key."""

    @abstractmethod
    def new_key(self, collection: str) -> str:
        """Mint a store-generated key without writing anything."""

    @abstractmethod
    def batch(self) -> WriteBatch:
        ...


class FirestoreWriteBatch(WriteBatch):
    def __init__(self, client: firestore.AsyncClient):
        self._client = client
        self._batch = client.batch()
        self._count = 0

    def set(self, collection: str, key: str, data: Dict[str, Any], merge: bool = False):
        self._batch.set(self._client.collection(collection).document(key), data, merge=merge)
        self._count += 1

    def delete(self, collection: str, key: str):
        self._batch.delete(self._client.collection(collection).document(key))
        self._count += 1

    def __len__(self) -> int:
        return self._count

    async def commit(self):
        await self._batch.commit()


class FirestoreDocumentStore(DocumentStore):
    """DocumentStore backed by `google.cloud.firestore.AsyncClient`.

    Honours FIRESTORE_EMULATOR_HOST through the client library itself.
    """

    def __init__(self, client: Optional[firestore.AsyncClient] = None, project: Optional[str] = None):
        self._client = client or firestore.AsyncClient(project=project)

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        snapshot = await self._client.collection(collection).document(key).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict()

    async def set(self, collection: str, key: str, data: Dict[str, Any], merge: bool = False):
        await self._client.collection(collection).document(key).set(data, merge=merge)

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        _, ref = await self._client.collection(collection).add(data)
        return ref.id

    async def delete(self, collection: str, key: str):
        await self._client.collection(collection).document(key).delete()

    async def query_tagged(
        self,
        collection: str,
        field: str,
        value: Any,
        page_size: int,
        start_after: Optional[str] = None,
    ) -> List[str]:
        query = (
            self._client.collection(collection)
            .where(filter=FieldFilter(field, "==", value))
            .order_by("__name__")
            .limit(page_size)
        )
        if start_after is not None:
            cursor = self._client.collection(collection).document(start_after)
            query = query.start_after({"__name__": cursor})
        return [snapshot.id async for snapshot in query.stream()]

    def new_key(self, collection: str) -> str:
        return self._client.collection(collection).document().id

    def batch(self) -> WriteBatch:
        return FirestoreWriteBatch(self._client)
