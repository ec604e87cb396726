import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

# Firestore rejects a batch above this many writes
MAX_BATCH_OPERATIONS = 500


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class Settings:
    """Runtime settings for the demo data tooling."""

    project_id: str = "engagenatural-dev"
    firebase_api_key: str = ""
    auth_emulator_host: str = ""
    batch_threshold: int = 400
    teardown_page_size: int = 400
    demo_account_password: str = "password123"
    admin_role: str = "super_admin"
    permission_collection: str = "test_permissions"
    seed_training_progress: bool = False
    seed_community_content: bool = False

    def __post_init__(self):
        if not 0 < self.batch_threshold < MAX_BATCH_OPERATIONS:
            raise ValueError(
                f"batch_threshold must be between 1 and {MAX_BATCH_OPERATIONS - 1}, "
                f"got {self.batch_threshold}"
            )
        if self.teardown_page_size <= 0:
            raise ValueError("teardown_page_size must be positive")


def get_settings() -> Settings:
    """Build settings from the environment."""
    return Settings(
        project_id=os.getenv("GOOGLE_CLOUD_PROJECT", "engagenatural-dev"),
        firebase_api_key=os.getenv("FIREBASE_API_KEY", ""),
        auth_emulator_host=os.getenv("FIREBASE_AUTH_EMULATOR_HOST", ""),
        batch_threshold=int(os.getenv("DEMO_BATCH_THRESHOLD", "400")),
        teardown_page_size=int(os.getenv("DEMO_TEARDOWN_PAGE_SIZE", "400")),
        demo_account_password=os.getenv("DEMO_ACCOUNT_PASSWORD", "password123"),
        admin_role=os.getenv("DEMO_ADMIN_ROLE", "super_admin"),
        permission_collection=os.getenv("DEMO_PERMISSION_COLLECTION", "test_permissions"),
        seed_training_progress=_env_flag("DEMO_SEED_TRAINING_PROGRESS"),
        seed_community_content=_env_flag("DEMO_SEED_COMMUNITY_CONTENT"),
    )


# Session cookie signing
SECRET_KEY = os.getenv("SECRET_KEY", "your-super-secret-key-change-in-production-min-32-chars")
SESSION_EXPIRE_MINUTES = int(os.getenv("SESSION_EXPIRE_MINUTES", "480"))

# Operator credentials for the command-line entrypoints
OPERATOR_EMAIL = os.getenv("OPERATOR_EMAIL", "")
OPERATOR_PASSWORD = os.getenv("OPERATOR_PASSWORD", "")
