#!/usr/bin/env python3
"""
One-time migration of legacy vendor categories.

Older vendor documents carry a single ``vendor.primaryCategory`` string.
This moves it into ``vendor.primaryCategories`` (when that array is missing
or empty) and unsets the legacy field. Safe to re-run; migrated documents no
longer match the filter.

Run with:
    python -m maintenance.vendor_categories
"""

from __future__ import annotations

import sys

from pymongo import MongoClient
from pymongo.collection import Collection

from config import DatabaseSettings, LoggingSettings
from repositories.account_repository import USERS_COLLECTION
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)

LEGACY_FILTER = {
    "role": "vendor",
    "vendor.primaryCategory": {"$type": "string"},
    "$or": [
        {"vendor.primaryCategories": {"$exists": False}},
        {"vendor.primaryCategories": {"$size": 0}},
        {"vendor.primaryCategories": None},
    ],
}


def migrate_vendor_categories(collection: Collection) -> int:
    """Migrate every matching vendor document. Returns the number migrated."""
    migrated = 0
    for doc in collection.find(LEGACY_FILTER, {"vendor.primaryCategory": 1}):
        category = str(doc["vendor"].get("primaryCategory") or "").strip()
        if not category:
            continue
        result = collection.update_one(
            {"_id": doc["_id"]},
            {
                "$set": {"vendor.primaryCategories": [category]},
                "$unset": {"vendor.primaryCategory": ""},
            },
        )
        migrated += result.modified_count
        log.debug("vendor_category_migrated", user_id=str(doc["_id"]))

    log.info("vendor_category_migration_complete", migrated=migrated)
    return migrated


def main() -> int:
    logging_settings = LoggingSettings()
    setup_logging(logging_settings.log_level, logging_settings.log_format)

    db_settings = DatabaseSettings()
    client: MongoClient = MongoClient(db_settings.mongodb_uri)
    try:
        migrate_vendor_categories(client[db_settings.db_name][USERS_COLLECTION])
    except Exception as e:
        log.error("vendor_category_migration_failed", error=str(e), error_type=type(e).__name__)
        return 1
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
