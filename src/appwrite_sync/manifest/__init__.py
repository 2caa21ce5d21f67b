"""Local manifest persistence."""

from appwrite_sync.manifest.settings import create_settings_object
from appwrite_sync.manifest.store import ManifestStore, Project

__all__ = ["ManifestStore", "Project", "create_settings_object"]
