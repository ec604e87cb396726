"""In-memory table of keys minted by earlier seed stages."""
from dataclasses import dataclass
from typing import Dict, List, Optional

from app.demo.errors import MissingReferenceError


@dataclass
class RetailerRef:
    key: str
    name: str
    store_code: str


@dataclass
class UserRef:
    key: str
    email: str
    display_name: str
    placeholder: bool = False
    retailer_key: Optional[str] = None


@dataclass
class TrainingRef:
    key: str
    title: str


@dataclass
class ProgramRef:
    key: str
    name: str


@dataclass
class CommunityRef:
    key: str
    name: str


@dataclass
class PostRef:
    key: str
    community_key: str
    title: str


class ReferenceTable:
    """Keys and the few denormalized fields later stages need.

    One table per seed run. Stages record their keys after their batch is
    committed, and read through the `require_*` accessors, which raise
    MissingReferenceError instead of handing out a key that was never written.
    """

    def __init__(self):
        self.brand_key: Optional[str] = None
        self.brand_name: Optional[str] = None
        self.accounts: Dict[str, UserRef] = {}
        self.brand_manager: Optional[UserRef] = None
        self.retailers: List[RetailerRef] = []
        self.staff: List[UserRef] = []
        self.trainings: List[TrainingRef] = []
        self.programs: List[ProgramRef] = []
        self.communities: List[CommunityRef] = []
        self.posts: List[PostRef] = []

    def record_brand(self, key: str, name: str):
        self.brand_key = key
        self.brand_name = name

    def require_brand(self) -> str:
        if not self.brand_key:
            raise MissingReferenceError("brand")
        return self.brand_key

    def require_brand_manager(self) -> UserRef:
        if self.brand_manager is None:
            raise MissingReferenceError("brand_manager")
        return self.brand_manager

    def require_account(self, email: str) -> UserRef:
        try:
            return self.accounts[email]
        except KeyError:
            raise MissingReferenceError(f"account:{email}") from None

    def _require_list(self, kind: str, items: list) -> list:
        if not items:
            raise MissingReferenceError(kind)
        return list(items)

    def require_retailers(self) -> List[RetailerRef]:
        return self._require_list("retailers", self.retailers)

    def require_staff(self) -> List[UserRef]:
        return self._require_list("staff", self.staff)

    def require_trainings(self) -> List[TrainingRef]:
        return self._require_list("trainings", self.trainings)

    def require_programs(self) -> List[ProgramRef]:
        return self._require_list("sample_programs", self.programs)

    def require_communities(self) -> List[CommunityRef]:
        return self._require_list("communities", self.communities)

    def require_posts(self) -> List[PostRef]:
        return self._require_list("community_posts", self.posts)

    def retailer(self, key: str) -> RetailerRef:
        for retailer in self.retailers:
            if retailer.key == key:
                return retailer
        raise MissingReferenceError(f"retailer:{key}")
