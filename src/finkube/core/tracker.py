# src/finkube/core/tracker.py
"""
Event-driven accounting of node allocatable/requested resources.

A single owner task consumes lifecycle events from a queue and is the only
code that touches the table. Readers send snapshot requests through the
same queue, so every read observes the table between two events.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from ..models.node import NodeResourceRecord
from ..utils.k8s_utils import parse_resource_list, pod_key, pod_node_name, pod_requests
from .exceptions import NodeNotFoundError

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    NODE_ADDED = "node_added"
    NODE_DELETED = "node_deleted"
    POD_ADDED = "pod_added"
    POD_UPDATED = "pod_updated"
    POD_DELETED = "pod_deleted"


@dataclass
class TrackerEvent:
    """A cluster lifecycle notification carrying the full object snapshot."""

    type: EventType
    obj: Any
    old_obj: Any = None


@dataclass
class _SnapshotRequest:
    node_name: Optional[str] = None


@dataclass
class _Envelope:
    message: Any
    reply: Optional[asyncio.Future] = field(default=None)


_STOP = object()


class NodeResourceTracker:
    """
    Maintains one NodeResourceRecord per tracked node.

    Handlers are idempotent under duplicate deliveries: a node is only
    created once and a pod is accounted at most once per node.
    """

    def __init__(self):
        self._nodes: Dict[str, NodeResourceRecord] = {}
        # Bound pods seen before their node, keyed by node name then pod key.
        self._pending: Dict[str, Dict[str, Any]] = {}
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None

    # --- Lifecycle ---

    def start(self) -> None:
        """Starts the owner task if it is not running yet."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="node-resource-tracker")
            logger.debug("NodeResourceTracker owner task started.")

    async def stop(self) -> None:
        """Processes queued events, then stops the owner task."""
        if self._task is None:
            return
        await self._queue.put(_Envelope(_STOP))
        await self._task
        self._task = None

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    async def _run(self) -> None:
        while True:
            envelope = await self._queue.get()
            if envelope.message is _STOP:
                break
            try:
                if isinstance(envelope.message, _SnapshotRequest):
                    result = self._read(envelope.message.node_name)
                else:
                    result = self.apply(envelope.message)
            except Exception as e:
                if envelope.reply is not None and not envelope.reply.done():
                    envelope.reply.set_exception(e)
                else:
                    logger.error(f"Failed to apply tracker event: {e}", exc_info=True)
                continue
            if envelope.reply is not None and not envelope.reply.done():
                envelope.reply.set_result(result)

    async def _request(self, message) -> Any:
        self.start()
        reply = asyncio.get_running_loop().create_future()
        await self._queue.put(_Envelope(message, reply))
        return await reply

    # --- Writers ---

    def submit(self, event: TrackerEvent) -> None:
        """Enqueues an event without waiting for it, for use from watch callbacks."""
        self.start()
        self._queue.put_nowait(_Envelope(event))

    async def add_node(self, node) -> None:
        await self._request(TrackerEvent(EventType.NODE_ADDED, node))

    async def delete_node(self, node) -> None:
        await self._request(TrackerEvent(EventType.NODE_DELETED, node))

    async def add_pod(self, pod) -> None:
        await self._request(TrackerEvent(EventType.POD_ADDED, pod))

    async def update_pod(self, old_pod, new_pod) -> None:
        await self._request(TrackerEvent(EventType.POD_UPDATED, new_pod, old_obj=old_pod))

    async def delete_pod(self, pod) -> None:
        await self._request(TrackerEvent(EventType.POD_DELETED, pod))

    # --- Readers ---

    async def get(self, node_name: str) -> NodeResourceRecord:
        """
        Returns a copy of the record of `node_name`.

        Raises:
            NodeNotFoundError: If the node is not tracked.
        """
        return await self._request(_SnapshotRequest(node_name))

    async def snapshot(self) -> Dict[str, NodeResourceRecord]:
        """Returns a copy of every tracked record, keyed by node name."""
        return await self._request(_SnapshotRequest())

    def _read(self, node_name: Optional[str]):
        if node_name is None:
            return {name: record.model_copy(deep=True) for name, record in self._nodes.items()}
        record = self._nodes.get(node_name)
        if record is None:
            raise NodeNotFoundError(f"Node '{node_name}' is not tracked")
        return record.model_copy(deep=True)

    # --- Table mutation, owner task only ---

    def apply(self, event: TrackerEvent) -> None:
        handlers = {
            EventType.NODE_ADDED: self._on_node_added,
            EventType.NODE_DELETED: self._on_node_deleted,
            EventType.POD_ADDED: self._on_pod_added,
            EventType.POD_UPDATED: self._on_pod_updated,
            EventType.POD_DELETED: self._on_pod_deleted,
        }
        handlers[event.type](event)

    def _on_node_added(self, event: TrackerEvent) -> None:
        node = event.obj
        name = node.metadata.name
        if name in self._nodes:
            return
        allocatable = node.status.allocatable if node.status else None
        self._nodes[name] = NodeResourceRecord(node_name=name, allocatable=parse_resource_list(allocatable))
        logger.debug(f"Tracking node '{name}'.")

        waiting = self._pending.pop(name, {})
        for pod in waiting.values():
            self._account_pod(pod)
        if waiting:
            logger.debug(f"Accounted {len(waiting)} pods that arrived before node '{name}'.")

    def _on_node_deleted(self, event: TrackerEvent) -> None:
        name = event.obj.metadata.name
        if self._nodes.pop(name, None) is None:
            logger.debug(f"Ignoring deletion of untracked node '{name}'.")
            return
        logger.debug(f"Stopped tracking node '{name}'.")

    def _on_pod_added(self, event: TrackerEvent) -> None:
        if pod_node_name(event.obj):
            self._account_pod(event.obj)

    def _on_pod_updated(self, event: TrackerEvent) -> None:
        # Only the binding of a pending pod changes what a node has committed.
        old_node = pod_node_name(event.old_obj) if event.old_obj is not None else ""
        if not old_node and pod_node_name(event.obj):
            self._account_pod(event.obj)

    def _on_pod_deleted(self, event: TrackerEvent) -> None:
        pod = event.obj
        node_name = pod_node_name(pod)
        record = self._nodes.get(node_name) if node_name else None
        key = pod_key(pod)
        if node_name in self._pending:
            self._pending[node_name].pop(key, None)
            if not self._pending[node_name]:
                del self._pending[node_name]
        if record is None or key not in record.pods:
            return

        for resource, value in pod_requests(pod).items():
            if resource not in record.requested:
                continue
            remaining = record.requested[resource] - value
            if remaining > 0:
                record.requested[resource] = remaining
            else:
                del record.requested[resource]
        record.pods.discard(key)

    def _account_pod(self, pod) -> None:
        node_name = pod_node_name(pod)
        record = self._nodes.get(node_name)
        key = pod_key(pod)
        if record is None:
            logger.debug(f"Node {node_name} is not tracked yet, holding pod {key} until it appears.")
            self._pending.setdefault(node_name, {})[key] = pod
            return
        if key in record.pods:
            return

        for resource, value in pod_requests(pod).items():
            if value == 0:
                continue
            record.requested[resource] = record.requested.get(resource, Decimal(0)) + value
        record.pods.add(key)
