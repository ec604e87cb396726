"""Shared fixtures for the demo data tests."""

import pytest

from app.config import Settings
from app.demo.batching import DEMO_TAG_FIELD
from app.identity import IdentitySession
from tests.fakes import OPERATOR_ID, FakeIdentityBackend, FakeIdentityService, InMemoryStore


@pytest.fixture
def store():
    store = InMemoryStore()
    # Real data that must survive every teardown
    store.docs["users"] = {
        OPERATOR_ID: {"role": "super_admin", "email": "admin@engagenatural.com"},
        "real-staff": {"role": "staff", "email": "real@store.com"},
        "flagged-false": {"role": "staff", DEMO_TAG_FIELD: False},
    }
    store.docs["brands"] = {"real-brand": {"name": "Real Brand"}}
    store.docs["retailers"] = {"real-retailer": {"name": "Real Retailer"}}
    return store


@pytest.fixture
def identity_backend():
    return FakeIdentityBackend()


@pytest.fixture
def identity(identity_backend):
    # The operator's own signed-in context
    return FakeIdentityService(identity_backend, IdentitySession(user_id=OPERATOR_ID, id_token="operator-token"))


@pytest.fixture
def settings():
    return Settings(batch_threshold=400, teardown_page_size=400)
