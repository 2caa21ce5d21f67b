"""appwrite-sync: reconcile a local project manifest with a live backend.

Pushes declared databases, collections, tables, functions, buckets,
teams and messaging topics to the remote project, and pulls remote
state back into the manifest.
"""

__version__ = "0.1.0"
