"""
Demo dataset for the EngageNatural brand dashboard.

Content only; keys for retailers, trainings, programs, requests and
announcements are minted by the store at seed time. The brand and the
communities use fixed slugs so re-seeding merges into the same documents.
"""
import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List


# =============================================================================
# BRAND (deterministic key)
# =============================================================================
DEMO_BRAND = {
    "id": "demo-brand",
    "name": "Demo Brand",
    "description": "Deterministic demo brand seeded for the dashboard demo",
}

# =============================================================================
# RETAILERS
# =============================================================================
DEMO_RETAILERS = [
    {
        "name": "Sprouts – Winter Park, FL",
        "chain": "Sprouts",
        "storeCode": "SP-WP",
        "city": "Winter Park",
        "state": "FL",
    },
    {
        "name": "Natural Grocers – Denver, CO",
        "chain": "Natural Grocers",
        "storeCode": "NG-DN",
        "city": "Denver",
        "state": "CO",
    },
]

# =============================================================================
# ACCOUNTS
# =============================================================================
DEMO_BRAND_MANAGER = {
    "email": "bm.demo@engagenatural.com",
    "display_name": "Demo Brand Manager",
}

DEMO_STAFF = [
    {"email": "staff.demo@engagenatural.com", "display_name": "Sam Wilson"},
    {"email": "staff2.demo@engagenatural.com", "display_name": "Jamie Lee"},
]

# =============================================================================
# TRAININGS
# =============================================================================
DEMO_TRAININGS = [
    {
        "title": "Rescue Drops 101",
        "description": "Learn the science behind Rescue Remedy drops and how to recommend them to customers experiencing stress.",
        "durationMins": 25,
        "sections": [
            {"id": "benefits", "type": "text", "title": "Benefits & Mechanisms",
             "content": "<p>Rescue Remedy drops combine five flower essences to help manage everyday stress.</p>"},
            {"id": "usage", "type": "video", "title": "Proper Usage & Dosing",
             "videoUrl": "https://videos.engagenatural.com/demo/rescue-usage.mp4"},
            {"id": "contraindications", "type": "text", "title": "Contraindications & Precautions",
             "content": "<p>When Rescue Remedy may not be appropriate and what to tell customers about interactions.</p>"},
        ],
    },
    {
        "title": "Bach Flower Basics",
        "description": "An introduction to Bach flower remedies and how to match remedies to customer emotional states.",
        "durationMins": 30,
        "sections": [
            {"id": "history", "type": "text", "title": "History & Philosophy",
             "content": "<p>Dr. Edward Bach's discovery of flower remedies and the principles behind them.</p>"},
            {"id": "remedy-guide", "type": "text", "title": "38 Remedies Overview",
             "content": "<p>A breakdown of the 38 Bach flower remedies and their emotional indications.</p>"},
            {"id": "customer-matching", "type": "video", "title": "Customer Consultation Guide",
             "videoUrl": "https://videos.engagenatural.com/demo/bach-consultation.mp4"},
        ],
    },
    {
        "title": "Spatone Iron 101",
        "description": "Spatone liquid iron supplements, absorption benefits and customer education strategies.",
        "durationMins": 20,
        "sections": [
            {"id": "iron-basics", "type": "text", "title": "Iron Deficiency Basics",
             "content": "<p>Common signs of iron deficiency and why supplementation matters for some customers.</p>"},
            {"id": "absorption-science", "type": "video", "title": "Absorption Science",
             "videoUrl": "https://videos.engagenatural.com/demo/spatone-absorption.mp4"},
            {"id": "customer-education", "type": "text", "title": "Customer Education",
             "content": "<p>Discussing iron supplementation without alarming customers, focusing on energy and wellness.</p>"},
        ],
    },
]

# =============================================================================
# SAMPLE PROGRAMS AND REQUESTS
# =============================================================================
DEMO_SAMPLE_PROGRAMS = [
    {
        "name": "Rescue Staff Try-On",
        "productName": "Rescue Remedy Drops",
        "description": "Experience Rescue Remedy firsthand to better recommend it to customers.",
        "unitsAvailable": 50,
        "windowDays": 30,
    },
    {
        "name": "Spatone Trial Kit",
        "productName": "Spatone Liquid Iron",
        "description": "Try Spatone liquid iron sachets to understand the taste and experience.",
        "unitsAvailable": 75,
        "windowDays": 45,
    },
]

SAMPLE_REQUEST_STATUSES = ["approved", "shipped", "pending", "denied"]

SAMPLE_REQUEST_NOTES = [
    "For staff education session",
    "For wellness department demo",
]

# =============================================================================
# ANNOUNCEMENTS (scoped=True limits the announcement to the first retailer)
# =============================================================================
DEMO_ANNOUNCEMENTS = [
    {
        "title": "Product: New Product Launch",
        "content": "Rescue Sleep gummies arrive in stores next month. Training goes live this week.",
        "priority": "high",
        "category": "product",
        "scoped": False,
    },
    {
        "title": "Event: In-Store Sampling Day",
        "content": "Sampling day this Saturday. Pick up your demo kit from the wellness desk.",
        "priority": "medium",
        "category": "event",
        "scoped": True,
    },
]

# =============================================================================
# COMMUNITIES (deterministic keys)
# =============================================================================
DEMO_COMMUNITIES = [
    {
        "id": "whats-good",
        "name": "What's Good",
        "description": "Check out What's Good for the latest product drops and industry buzz!",
        "isPublic": True,
        "requiresVerification": False,
        "memberCount": 2500,
    },
    {
        "id": "supplement-scoop",
        "name": "Supplement Scoop",
        "description": "Insider intel on which supplements actually work, from the pros who sell them.",
        "isPublic": True,
        "requiresVerification": True,
        "memberCount": 850,
    },
]

# Optional community content, one post per training topic
DEMO_POSTS = [
    {
        "title": "When to recommend Rescue during stressful seasons",
        "content": "Customers are stressed this time of year. Fast-acting drops for acute moments, gummies for all-day support. What works in your stores?",
    },
    {
        "title": "Pairing Bach remedies with customer goals",
        "content": "Asking about wellness goals first makes matching remedies much easier. Has anyone built a quick reference guide?",
    },
    {
        "title": "How to talk iron without scaring customers",
        "content": "Framing around energy and vitality lands better than talking about deficiency. What language works for you?",
    },
]

DEMO_COMMENTS = [
    "Great insights! I've been using this approach with my customers and seeing positive results.",
    "Thanks for sharing. This has been helpful for our team's training.",
]

TRAINING_PROGRESS_STATUSES = ["completed", "in_progress", "not_started"]


@dataclass
class DemoDataset:
    """Everything a seed run writes, before keys are assigned."""

    brand: Dict[str, Any]
    retailers: List[Dict[str, Any]]
    brand_manager: Dict[str, Any]
    staff: List[Dict[str, Any]]
    trainings: List[Dict[str, Any]] = field(default_factory=list)
    sample_programs: List[Dict[str, Any]] = field(default_factory=list)
    announcements: List[Dict[str, Any]] = field(default_factory=list)
    communities: List[Dict[str, Any]] = field(default_factory=list)
    posts: List[Dict[str, Any]] = field(default_factory=list)


def default_dataset() -> DemoDataset:
    """Fresh copy of the standard demo dataset."""
    return DemoDataset(
        brand=copy.deepcopy(DEMO_BRAND),
        retailers=copy.deepcopy(DEMO_RETAILERS),
        brand_manager=copy.deepcopy(DEMO_BRAND_MANAGER),
        staff=copy.deepcopy(DEMO_STAFF),
        trainings=copy.deepcopy(DEMO_TRAININGS),
        sample_programs=copy.deepcopy(DEMO_SAMPLE_PROGRAMS),
        announcements=copy.deepcopy(DEMO_ANNOUNCEMENTS),
        communities=copy.deepcopy(DEMO_COMMUNITIES),
        posts=copy.deepcopy(DEMO_POSTS),
    )
