"""appwrite-sync services layer.

Services coordinate between the manifest store, the remote gateway and
the user-facing confirmation and progress output.
"""

from appwrite_sync.services.classifier import classify
from appwrite_sync.services.confirmation import Confirmer
from appwrite_sync.services.poller import Poller, PollProgress, RemoteWaiter
from appwrite_sync.services.progress import Reporter
from appwrite_sync.services.pull import Pull
from appwrite_sync.services.push import Push

__all__ = [
    "Confirmer",
    "PollProgress",
    "Poller",
    "Pull",
    "Push",
    "RemoteWaiter",
    "Reporter",
    "classify",
]
