"""Data models for appwrite-sync."""

from appwrite_sync.models.changes import ChangeAction, ChangeRecord, ChangeSet
from appwrite_sync.models.manifest import (
    Attribute,
    Bucket,
    Collection,
    Database,
    Function,
    Index,
    Manifest,
    ManifestModel,
    Table,
    Team,
    Topic,
)
from appwrite_sync.models.results import FailedDeployment, PushResult
from appwrite_sync.models.schema import COLLECTIONS, TABLES, SchemaFlavor

__all__ = [
    "COLLECTIONS",
    "TABLES",
    "Attribute",
    "Bucket",
    "ChangeAction",
    "ChangeRecord",
    "ChangeSet",
    "Collection",
    "Database",
    "FailedDeployment",
    "Function",
    "Index",
    "Manifest",
    "ManifestModel",
    "PushResult",
    "SchemaFlavor",
    "Table",
    "Team",
    "Topic",
]
