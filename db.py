"""
MongoDB database connection and deployment settings storage.

Handles connecting to MongoDB and provides helper functions for reading,
lazily initializing and updating the single deployment settings document.
"""

import hashlib
import time
from dataclasses import asdict, dataclass

from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from config import MONGO_URI, MONGO_DB_NAME
from constants import (
    DEFAULT_BRANCH,
    SETTING_FIELDS,
    SETTINGS_COLLECTION,
    SETTINGS_ID,
)

# Global MongoDB client (initialized once, reused)
_client = None
_db = None


@dataclass(frozen=True)
class DeploySettings:
    """Deployment settings passed explicitly into the validator and deployer."""

    key: str
    branch: str = DEFAULT_BRANCH
    log: str = ""
    stage_wp_path: str = ""

    @classmethod
    def from_document(cls, document):
        return cls(**{field: str(document.get(field) or "") for field in SETTING_FIELDS})

    def to_document(self):
        return asdict(self)


def get_db():
    """
    Get MongoDB database instance (creates connection if needed).

    Returns:
        Database: MongoDB database object.

    Raises:
        ConnectionFailure: If MongoDB connection fails.
    """
    global _client, _db

    if _db is None:
        try:
            _client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=5000)
            # Test connection
            _client.server_info()
            _db = _client[MONGO_DB_NAME]
            print(f"✅ Connected to MongoDB: {MONGO_DB_NAME}")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            print(f"❌ MongoDB connection failed: {e}")
            print(f"   URI: {MONGO_URI}")
            raise

    return _db


def get_settings_collection():
    """
    Get the settings collection from MongoDB.

    Returns:
        Collection: MongoDB collection holding the settings document.
    """
    db = get_db()
    return db[SETTINGS_COLLECTION]


def default_settings():
    """
    Build the settings used on first access.

    The key is the md5 of the current unix time, so every fresh install gets
    a different, non-empty secret.
    """
    key = hashlib.md5(str(int(time.time())).encode("utf-8")).hexdigest()
    return DeploySettings(key=key)


def initialize_settings(collection=None):
    """Store default settings, replacing whatever document was there."""
    collection = collection if collection is not None else get_settings_collection()
    settings = default_settings()
    collection.replace_one(
        {"_id": SETTINGS_ID},
        {"_id": SETTINGS_ID, **settings.to_document()},
        upsert=True,
    )
    print("✅ Initialized deployment settings")
    return settings


def get_settings(collection=None):
    """
    Read the deployment settings, initializing them on first access.

    Args:
        collection (Collection, optional): Settings collection. Defaults to
            the one from get_settings_collection().

    Returns:
        DeploySettings: The stored settings, unchanged.
    """
    collection = collection if collection is not None else get_settings_collection()
    document = collection.find_one({"_id": SETTINGS_ID})

    # If we don't have any settings, initialize them and read them back.
    if not document:
        initialize_settings(collection)
        document = collection.find_one({"_id": SETTINGS_ID})

    return DeploySettings.from_document(document)


def update_settings(changes, collection=None):
    """
    Update some of the deployment settings (what the admin form used to do).

    Args:
        changes (dict): Field name → new value. Only key, log, branch and
            stage_wp_path are accepted.
        collection (Collection, optional): Settings collection.

    Returns:
        DeploySettings: Settings after the update.

    Raises:
        ValueError: On unknown fields or an empty key.
    """
    unknown = set(changes) - set(SETTING_FIELDS)
    if unknown:
        raise ValueError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
    if "key" in changes and not changes["key"]:
        raise ValueError("The deployment key cannot be empty")

    collection = collection if collection is not None else get_settings_collection()

    # Make sure defaults exist so a partial update never leaves fields missing.
    get_settings(collection)

    if changes:
        collection.update_one(
            {"_id": SETTINGS_ID},
            {"$set": {field: str(value) for field, value in changes.items()}},
        )
    return get_settings(collection)
