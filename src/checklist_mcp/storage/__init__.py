"""In-memory stores for Checklist MCP."""

from .models import SaveResult, SessionEntry, WorkInfo, WorkInfoSummary
from .namespaces import DEFAULT_NAMESPACE, NamespaceManager, NamespaceStores
from .sessions import SessionRegistry
from .work_info import WorkInfoCache, validate_work_fields

__all__ = [
    "DEFAULT_NAMESPACE",
    "NamespaceManager",
    "NamespaceStores",
    "SaveResult",
    "SessionEntry",
    "SessionRegistry",
    "WorkInfo",
    "WorkInfoCache",
    "WorkInfoSummary",
    "validate_work_fields",
]
