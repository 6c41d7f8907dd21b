"""Bookkeeping for in-flight and historical transfer operations."""

import dataclasses
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from common.constants import RECENT_OPERATIONS_LIMIT
from common.logging_config import get_logger
from common.types import utc_now

logger = get_logger(__name__)

class OperationKind(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
    DELETE = "delete"
    SHARE = "share"

class OperationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ERROR = "error"

@dataclass(frozen=True)
class TransferOperation:
    """Observable status record for one upload/download/delete/share."""
    id: str
    kind: OperationKind
    object_name: str
    status: OperationStatus
    created_at: datetime
    progress_percent: Optional[int] = None
    error: Optional[str] = None

@dataclass(frozen=True)
class TransferProgress:
    """Per-chunk progress event emitted by an upload."""
    name: str
    progress: int
    current_chunk: int
    total_chunks: int
    is_complete: bool
    error: Optional[str] = None

OperationListener = Callable[[TransferOperation], None]
ProgressListener = Callable[[TransferProgress], None]
Unsubscribe = Callable[[], None]

class OperationRegistry:
    """
    In-memory store of TransferOperation records keyed by a fresh id.

    Records are keyed by id, not object name, so concurrent transfers of
    different objects never share a record. Each record has a single
    writer: the call that created it.
    """

    def __init__(self):
        self._operations: Dict[str, TransferOperation] = {}
        self._listeners: List[OperationListener] = []

    def begin(
        self,
        kind: OperationKind,
        object_name: str,
        status: OperationStatus = OperationStatus.IN_PROGRESS,
    ) -> str:
        """
        Create a record and return its id.

        Args:
            kind: Operation kind
            object_name: Target object
            status: Initial status, pending or in-progress

        Returns:
            Opaque operation id
        """
        operation = TransferOperation(
            id=uuid.uuid4().hex,
            kind=OperationKind(kind),
            object_name=object_name,
            status=OperationStatus(status),
            created_at=utc_now(),
        )
        self._operations[operation.id] = operation
        logger.debug(f"Began {operation.kind.value} operation {operation.id} for '{object_name}'")
        self._notify(operation)
        return operation.id

    def update(self, operation_id: str, **changes) -> Optional[TransferOperation]:
        """
        Merge ``changes`` (status, progress_percent, error) into a record.

        Unknown ids are ignored.

        Returns:
            The updated record, or None if the id is unknown
        """
        operation = self._operations.get(operation_id)
        if operation is None:
            logger.debug(f"Ignoring update for unknown operation {operation_id}")
            return None

        if 'status' in changes:
            changes['status'] = OperationStatus(changes['status'])

        operation = dataclasses.replace(operation, **changes)
        self._operations[operation_id] = operation
        self._notify(operation)
        return operation

    def get(self, operation_id: str) -> Optional[TransferOperation]:
        return self._operations.get(operation_id)

    def remove(self, operation_id: str) -> bool:
        return self._operations.pop(operation_id, None) is not None

    def recent(self, limit: int = RECENT_OPERATIONS_LIMIT) -> List[TransferOperation]:
        """Newest-first records, at most ``limit`` of them."""
        newest_inserted_first = list(reversed(list(self._operations.values())))
        ordered = sorted(newest_inserted_first, key=lambda op: op.created_at, reverse=True)
        return ordered[:limit]

    def prune_completed(self) -> int:
        """
        Drop every completed record.

        Returns:
            Number of records dropped
        """
        completed = [
            op_id for op_id, op in self._operations.items()
            if op.status is OperationStatus.COMPLETED
        ]
        for op_id in completed:
            del self._operations[op_id]
        if completed:
            logger.debug(f"Pruned {len(completed)} completed operations")
        return len(completed)

    def subscribe(self, listener: OperationListener) -> Unsubscribe:
        """Call ``listener`` with every created or updated record."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, operation: TransferOperation) -> None:
        for listener in list(self._listeners):
            try:
                listener(operation)
            except Exception as e:
                logger.error(f"Operation listener failed for {operation.id}: {e}", exc_info=True)

    def __len__(self) -> int:
        return len(self._operations)

class ProgressTable:
    """
    Latest upload progress per object name (last write wins).

    Polling readers use ``latest``; push readers ``subscribe`` to a name.
    """

    def __init__(self):
        self._latest: Dict[str, TransferProgress] = {}
        self._listeners: Dict[str, List[ProgressListener]] = {}

    def publish(self, key: str, progress: TransferProgress) -> None:
        self._latest[key] = progress
        for listener in list(self._listeners.get(key, [])):
            try:
                listener(progress)
            except Exception as e:
                logger.error(f"Progress listener failed for '{key}': {e}", exc_info=True)

    def latest(self, key: str) -> Optional[TransferProgress]:
        return self._latest.get(key)

    def clear(self, key: str) -> None:
        self._latest.pop(key, None)

    def pending(self) -> List[TransferProgress]:
        return [p for p in self._latest.values() if not p.is_complete]

    def subscribe(self, key: str, listener: ProgressListener) -> Unsubscribe:
        """Call ``listener`` with every progress event published under ``key``."""
        self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(key, None)

        return unsubscribe
