"""
inventory_services -- Package init and public API.

Responsibility:
    Stateful services between the pure engines and the module facades: the
    remote document store contract and its implementations, the collection
    cache, realtime snapshot sync, and workflow transition execution.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

    Dependency direction:
        inventory_modules/  -> inventory_services/ (allowed)
        inventory_services/ -> inventory_engines/  (allowed)
        inventory_services/ -> inventory_kernel/   (allowed)
        inventory_engines/  -> inventory_services/ (FORBIDDEN)
        inventory_kernel/   -> inventory_services/ (FORBIDDEN)
"""

from inventory_services.cache_store import CacheStore
from inventory_services.realtime_sync import RealtimeSync, Subscription
from inventory_services.remote_store import (
    InMemoryDocumentStore,
    ListenerRegistry,
    RemoteStore,
    query_documents,
)
from inventory_services.sql_store import SqlDocumentStore
from inventory_services.workflow_executor import (
    MutationResult,
    MutationStatus,
    WorkflowExecutor,
)

__all__ = [
    "CacheStore",
    "InMemoryDocumentStore",
    "ListenerRegistry",
    "MutationResult",
    "MutationStatus",
    "RealtimeSync",
    "RemoteStore",
    "SqlDocumentStore",
    "Subscription",
    "WorkflowExecutor",
    "query_documents",
]
