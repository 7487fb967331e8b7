"""GitHub label synchronization bot.

Keeps the labels of every tracked repository in line with:
- a shared base label set (``labels.json`` in the metadata repository)
- per-product ``api: *`` labels derived from the DRIFT metadata bucket
"""

__version__ = "0.1.0"

from label_sync.config import LabelSyncSettings

__all__ = ["__version__", "LabelSyncSettings"]
