"""
Seed stages.

Each stage reads the keys it needs from the ReferenceTable, stages tagged
writes through the BatchSession, commits them, and only then records its own
keys for the stages after it.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from app.config import Settings
from app.demo.batching import BatchSession, WriteOp, tagged
from app.demo.dataset import (
    DEMO_COMMENTS,
    SAMPLE_REQUEST_NOTES,
    SAMPLE_REQUEST_STATUSES,
    TRAINING_PROGRESS_STATUSES,
    DemoDataset,
)
from app.demo.references import (
    CommunityRef,
    PostRef,
    ProgramRef,
    ReferenceTable,
    RetailerRef,
    TrainingRef,
    UserRef,
)
from app.store import DocumentStore
from app.utils.dates import days_ago, days_from_now, utc_now

logger = logging.getLogger(__name__)


def slugify(s: str) -> str:
    """Lowercase URL slug, e.g. "Hello World!" -> "hello-world"."""
    s = re.sub(r"[^a-z0-9\s-]", "", s.lower().strip())
    s = re.sub(r"\s+", "-", s)
    return re.sub(r"-+", "-", s)


@dataclass
class StageContext:
    store: DocumentStore
    session: BatchSession
    refs: ReferenceTable
    dataset: DemoDataset
    settings: Settings
    operator_id: Optional[str] = None


@dataclass
class Stage:
    name: str
    run: Callable[[StageContext], Awaitable[None]]
    depends_on: List[str] = field(default_factory=list)


# =============================================================================
# BRAND
# =============================================================================

async def seed_brand(ctx: StageContext):
    brand = ctx.dataset.brand
    manager = ctx.refs.require_account(ctx.dataset.brand_manager["email"])
    ctx.session.begin_stage("brands")
    await ctx.session.stage(WriteOp.set("brands", brand["id"], tagged({
        "name": brand["name"],
        "slug": brand["id"],
        "description": brand.get("description", ""),
        "ownerId": manager.key,
        "managers": [manager.key],
        "createdAt": utc_now(),
    }), merge=True))
    await ctx.session.flush_final()
    ctx.refs.record_brand(brand["id"], brand["name"])
    logger.info(f"  Brand: {brand['name']} ({brand['id']})")


# =============================================================================
# RETAILERS
# =============================================================================

async def seed_retailers(ctx: StageContext):
    ctx.session.begin_stage("retailers")
    minted = []
    for retailer in ctx.dataset.retailers:
        key = ctx.store.new_key("retailers")
        await ctx.session.stage(WriteOp.set("retailers", key, tagged({
            "name": retailer["name"],
            "chain": retailer["chain"],
            "storeCode": retailer["storeCode"],
            "location": {"city": retailer["city"], "state": retailer["state"]},
            "createdAt": utc_now(),
        })))
        minted.append(RetailerRef(key, retailer["name"], retailer["storeCode"]))
    await ctx.session.flush_final()
    ctx.refs.retailers.extend(minted)
    logger.info(f"  Retailers: {len(minted)}")


# =============================================================================
# USER ACCOUNTS
# =============================================================================

async def seed_users(ctx: StageContext):
    brand_key = ctx.refs.require_brand()
    retailers = ctx.refs.require_retailers()
    manager = ctx.refs.require_account(ctx.dataset.brand_manager["email"])
    staff = [ctx.refs.require_account(s["email"]) for s in ctx.dataset.staff]

    ctx.session.begin_stage("users")
    await ctx.session.stage(WriteOp.set("users", manager.key, tagged({
        "uid": manager.key,
        "email": manager.email,
        "displayName": manager.display_name,
        "role": "brand_manager",
        "approved": True,
        "brandId": brand_key,
        "placeholderAccount": manager.placeholder,
        "createdAt": utc_now(),
    }), merge=True, entity_type="brand_managers"))

    placed = []
    for i, account in enumerate(staff):
        # Retailers are assigned round-robin
        retailer = retailers[i % len(retailers)]
        await ctx.session.stage(WriteOp.set("users", account.key, tagged({
            "uid": account.key,
            "email": account.email,
            "displayName": account.display_name,
            "role": "staff",
            "verified": True,
            "verificationStatus": "verified",
            "retailerId": retailer.key,
            "storeCode": retailer.store_code,
            "placeholderAccount": account.placeholder,
            "createdAt": utc_now(),
        }), merge=True, entity_type="staff"))
        placed.append(UserRef(account.key, account.email, account.display_name,
                              account.placeholder, retailer.key))
    await ctx.session.flush_final()

    ctx.refs.brand_manager = manager
    ctx.refs.staff.extend(placed)
    logger.info(f"  Users: 1 brand manager, {len(placed)} staff")


# =============================================================================
# TRAININGS
# =============================================================================

async def seed_trainings(ctx: StageContext):
    brand_key = ctx.refs.require_brand()
    author = ctx.refs.require_brand_manager()

    ctx.session.begin_stage("trainings")
    minted = []
    for training in ctx.dataset.trainings:
        key = ctx.store.new_key("trainings")
        sections = [
            {**section, "order": position}
            for position, section in enumerate(training["sections"])
        ]
        await ctx.session.stage(WriteOp.set("trainings", key, tagged({
            "brandId": brand_key,
            "title": training["title"],
            "description": training["description"],
            "durationMins": training["durationMins"],
            "modules": [s["id"] for s in sections],
            "sections": sections,
            "authorUid": author.key,
            "published": True,
            "visibility": "public",
            # Usage updates these counters, the seeder only initialises them
            "metrics": {"enrolled": 0, "completed": 0},
            "createdAt": utc_now(),
        })))
        minted.append(TrainingRef(key, training["title"]))
    await ctx.session.flush_final()
    ctx.refs.trainings.extend(minted)
    logger.info(f"  Trainings: {len(minted)}")


async def seed_training_progress(ctx: StageContext):
    trainings = ctx.refs.require_trainings()
    staff = ctx.refs.require_staff()

    ctx.session.begin_stage("training_progress")
    n = 0
    for training in trainings:
        for member in staff:
            status = TRAINING_PROGRESS_STATUSES[n % len(TRAINING_PROGRESS_STATUSES)]
            progress = {"completed": 100, "in_progress": 50, "not_started": 0}[status]
            await ctx.session.stage(WriteOp.set("training_progress", ctx.store.new_key("training_progress"), tagged({
                "trainingId": training.key,
                "userId": member.key,
                "retailerId": member.retailer_key,
                "status": status,
                "progress": progress,
                "completedAt": utc_now() if status == "completed" else None,
                "createdAt": utc_now(),
            })))
            n += 1
    await ctx.session.flush_final()
    logger.info(f"  Training progress records: {n}")


# =============================================================================
# SAMPLE PROGRAMS AND REQUESTS
# =============================================================================

async def seed_samples(ctx: StageContext):
    brand_key = ctx.refs.require_brand()
    owner = ctx.refs.require_brand_manager()

    ctx.session.begin_stage("sample_programs")
    programs = []
    for program in ctx.dataset.sample_programs:
        key = ctx.store.new_key("sample_programs")
        await ctx.session.stage(WriteOp.set("sample_programs", key, tagged({
            "brandId": brand_key,
            "name": program["name"],
            "productName": program["productName"],
            "description": program["description"],
            "unitsAvailable": program["unitsAvailable"],
            "startDate": utc_now(),
            "endDate": days_from_now(program["windowDays"]),
            "createdBy": owner.key,
            "createdAt": utc_now(),
        })))
        programs.append(ProgramRef(key, program["name"]))
    await ctx.session.flush_final()
    ctx.refs.programs.extend(programs)

    # Requests only reference keys already committed above or by earlier stages
    programs = ctx.refs.require_programs()
    staff = ctx.refs.require_staff()
    ctx.session.begin_stage("sample_requests")
    for i, member in enumerate(staff):
        program = programs[i % len(programs)]
        retailer = ctx.refs.retailer(member.retailer_key)
        await ctx.session.stage(WriteOp.set("sample_requests", ctx.store.new_key("sample_requests"), tagged({
            "programId": program.key,
            "brandId": brand_key,
            "userId": member.key,
            "retailerId": retailer.key,
            "storeCode": retailer.store_code,
            "quantity": 3 + 2 * (i % 2),
            "status": SAMPLE_REQUEST_STATUSES[i % len(SAMPLE_REQUEST_STATUSES)],
            "notes": SAMPLE_REQUEST_NOTES[i % len(SAMPLE_REQUEST_NOTES)],
            "createdAt": days_ago(i),
            "updatedAt": utc_now(),
        })))
    await ctx.session.flush_final()
    logger.info(f"  Sample programs: {len(programs)}, sample requests: {len(staff)}")


# =============================================================================
# ANNOUNCEMENTS AND COMMUNITIES
# =============================================================================

async def seed_announcements_and_communities(ctx: StageContext):
    brand_key = ctx.refs.require_brand()
    author = ctx.refs.require_brand_manager()
    retailers = ctx.refs.require_retailers()

    ctx.session.begin_stage("announcements")
    for announcement in ctx.dataset.announcements:
        data = {
            "brandId": brand_key,
            "title": announcement["title"],
            "content": announcement["content"],
            "priority": announcement["priority"],
            "category": announcement["category"],
            "authorId": author.key,
            "author": author.display_name,
            "createdAt": utc_now(),
        }
        # No retailerIds means the announcement goes to every retailer
        if announcement.get("scoped"):
            data["retailerIds"] = [retailers[0].key]
        await ctx.session.stage(WriteOp.set("announcements", ctx.store.new_key("announcements"), tagged(data)))
    await ctx.session.flush_final()

    ctx.session.begin_stage("communities")
    communities = []
    for community in ctx.dataset.communities:
        data = {k: v for k, v in community.items() if k != "id"}
        data["brandId"] = brand_key
        data["createdAt"] = utc_now()
        await ctx.session.stage(WriteOp.set("communities", community["id"], tagged(data), merge=True))
        communities.append(CommunityRef(community["id"], community["name"]))
    await ctx.session.flush_final()
    ctx.refs.communities.extend(communities)
    logger.info(f"  Announcements: {len(ctx.dataset.announcements)}, communities: {len(communities)}")


async def seed_community_content(ctx: StageContext):
    brand_key = ctx.refs.require_brand()
    author = ctx.refs.require_brand_manager()
    community = ctx.refs.require_communities()[0]
    staff = ctx.refs.require_staff()

    ctx.session.begin_stage("community_posts")
    posts = []
    for post in ctx.dataset.posts:
        key = f"post-{brand_key}-{slugify(post['title'])}"
        await ctx.session.stage(WriteOp.set("community_posts", key, tagged({
            "brandId": brand_key,
            "communityId": community.key,
            "userId": author.key,
            "userName": author.display_name,
            "title": post["title"],
            "content": post["content"],
            "visibility": "public",
            "likeCount": len(staff),
            "commentCount": min(len(DEMO_COMMENTS), len(staff)),
            "createdAt": utc_now(),
            "updatedAt": utc_now(),
        }), merge=True))
        posts.append(PostRef(key, community.key, post["title"]))
    await ctx.session.flush_final()
    ctx.refs.posts.extend(posts)

    ctx.session.begin_stage("community_comments")
    for post in ctx.refs.require_posts():
        for i, member in enumerate(staff[:len(DEMO_COMMENTS)]):
            await ctx.session.stage(WriteOp.set("community_comments", f"comment-{post.key}-{i + 1}", tagged({
                "postId": post.key,
                "communityId": post.community_key,
                "userId": member.key,
                "userName": member.display_name,
                "content": DEMO_COMMENTS[i],
                "createdAt": utc_now(),
            }), merge=True))
    await ctx.session.flush_final()

    ctx.session.begin_stage("community_likes")
    for post in ctx.refs.require_posts():
        for member in staff:
            await ctx.session.stage(WriteOp.set("community_likes", f"like-{post.key}-{member.key}", tagged({
                "postId": post.key,
                "userId": member.key,
                "createdAt": utc_now(),
            }), merge=True))
    await ctx.session.flush_final()
    logger.info(f"  Community posts: {len(posts)}")


CORE_STAGES = [
    Stage("brand", seed_brand),
    Stage("retailers", seed_retailers),
    Stage("users", seed_users, ["brand", "retailers"]),
    Stage("trainings", seed_trainings, ["brand", "users"]),
    Stage("samples", seed_samples, ["brand", "users"]),
    Stage("announcements_communities", seed_announcements_and_communities, ["brand", "users", "retailers"]),
]

TRAINING_PROGRESS_STAGE = Stage("training_progress", seed_training_progress, ["trainings", "users"])
COMMUNITY_CONTENT_STAGE = Stage("community_content", seed_community_content, ["announcements_communities", "users"])


def build_stages(settings: Settings) -> List[Stage]:
    """Ordered stage list, including the optional stages switched on in settings."""
    stages = list(CORE_STAGES)
    if settings.seed_training_progress:
        stages.insert(stages.index(CORE_STAGES[3]) + 1, TRAINING_PROGRESS_STAGE)
    if settings.seed_community_content:
        stages.append(COMMUNITY_CONTENT_STAGE)
    return stages
