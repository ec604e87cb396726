#!/usr/bin/env python3
"""
Demo Data Cleanup Script for the EngageNatural dashboard

Removes ALL demo data from Firestore.
Demo data is identified by the `demoSeed: true` field on each document.

This script ONLY removes demo data and will NOT affect production data.

Usage:
    python -m app.demo.remove_demo_data
    python -m app.demo.remove_demo_data --force
"""

import asyncio
import logging
import sys
from typing import List, Optional

from app.config import Settings, get_settings
from app.demo.errors import DemoDataError
from app.demo.preflight import check_delete_permissions
from app.demo.run import DemoRun, RunState
from app.demo.teardown import DEMO_COLLECTIONS, TeardownEngine, TeardownResult
from app.store import DocumentStore, FirestoreDocumentStore

logger = logging.getLogger(__name__)


async def reset_demo_data(
    *,
    store: DocumentStore,
    settings: Optional[Settings] = None,
    collections: Optional[List[str]] = None,
    operator_id: Optional[str] = None,
    run: Optional[DemoRun] = None,
) -> TeardownResult:
    """Delete demo-tagged documents from every demo collection.

    Runs the write/delete permission check first; nothing is deleted if it
    fails. A failing collection does not stop the others, the first failure
    is raised once all of them were attempted.
    """
    settings = settings or get_settings()
    collections = list(collections or DEMO_COLLECTIONS)
    run = run or DemoRun("reset")

    try:
        run.advance(RunState.PREFLIGHT)
        await check_delete_permissions(store, settings, operator_id)

        run.advance(RunState.TEARDOWN, ", ".join(collections))
        engine = TeardownEngine(store, settings.batch_threshold, settings.teardown_page_size)
        result = await engine.run(collections)
    except Exception as e:
        run.fail(e)
        raise

    run.advance(RunState.DONE)
    logger.info(f"Demo data reset complete: {result.total} documents removed")
    return result


def main(force: bool = False):
    settings = get_settings()
    store = FirestoreDocumentStore(project=settings.project_id)

    print(f"Project: {settings.project_id}")
    print("Collections:")
    for name in DEMO_COLLECTIONS:
        print(f"  - {name}")
    print("\nThis will permanently delete every document with demoSeed == true.")

    if not force:
        response = input("Type 'DELETE' to confirm: ")
        if response != "DELETE":
            print("Aborted. No data was deleted.")
            return False

    print("\nDeleting demo data...")
    try:
        result = asyncio.run(reset_demo_data(store=store, settings=settings))
    except DemoDataError as e:
        print(f"Error removing demo data: {e.code}: {e.message}")
        raise

    for name, count in result.deleted.items():
        print(f"  Deleted {count} {name}")
    print("\nDemo data removed successfully!")
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    # Check for --force flag
    main(force=len(sys.argv) > 1 and sys.argv[1] == "--force")
