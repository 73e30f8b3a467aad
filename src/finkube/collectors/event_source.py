# src/finkube/collectors/event_source.py
"""
Feeds node and pod lifecycle events from Kubernetes watches into the
NodeResourceTracker.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from kubernetes_asyncio import watch
from kubernetes_asyncio.client.rest import ApiException

from ..core.k8s_client import get_core_v1_api
from ..core.tracker import EventType, NodeResourceTracker, TrackerEvent
from ..utils.k8s_utils import pod_key

logger = logging.getLogger(__name__)

RESTART_DELAY_SECONDS = 5


class PodEventTranslator:
    """
    Turns raw watch events into tracker events.

    A watch MODIFIED event only carries the new object, so the last seen
    version of each pod is kept to detect the unscheduled -> scheduled
    transition.
    """

    def __init__(self):
        self._last_seen: Dict[str, object] = {}

    def translate(self, event_type: str, pod) -> Optional[TrackerEvent]:
        key = pod_key(pod)
        if event_type == "ADDED":
            self._last_seen[key] = pod
            return TrackerEvent(EventType.POD_ADDED, pod)
        if event_type == "MODIFIED":
            old = self._last_seen.get(key)
            self._last_seen[key] = pod
            if old is None:
                return TrackerEvent(EventType.POD_ADDED, pod)
            return TrackerEvent(EventType.POD_UPDATED, pod, old_obj=old)
        if event_type == "DELETED":
            self._last_seen.pop(key, None)
            return TrackerEvent(EventType.POD_DELETED, pod)
        return None


def translate_node_event(event_type: str, node) -> Optional[TrackerEvent]:
    if event_type in ("ADDED", "MODIFIED"):
        return TrackerEvent(EventType.NODE_ADDED, node)
    if event_type == "DELETED":
        return TrackerEvent(EventType.NODE_DELETED, node)
    return None


class ClusterEventSource:
    """Runs one watch per kind until stopped, restarting expired watches."""

    def __init__(self, tracker: NodeResourceTracker, api=None):
        self.tracker = tracker
        self._api = api
        self._pods = PodEventTranslator()
        self._tasks: List[asyncio.Task] = []

    async def start(self) -> None:
        if self._api is None:
            self._api = await get_core_v1_api()
        if self._api is None:
            logger.warning("Kubernetes client not configured; the resource tracker will stay empty.")
            return
        self._tasks = [
            asyncio.create_task(self._watch("nodes", self._api.list_node, translate_node_event)),
            asyncio.create_task(self._watch("pods", self._api.list_pod_for_all_namespaces, self._pods.translate)),
        ]

    async def _watch(self, kind: str, list_func, translate) -> None:
        try:
            while True:
                try:
                    async with watch.Watch() as w:
                        async for event in w.stream(list_func):
                            tracker_event = translate(event["type"], event["object"])
                            if tracker_event is not None:
                                self.tracker.submit(tracker_event)
                except ApiException as e:
                    logger.warning(f"Watch on {kind} failed: {e.status} {e.reason}")
                logger.debug(f"Restarting the {kind} watch.")
                await asyncio.sleep(RESTART_DELAY_SECONDS)
        except asyncio.CancelledError:
            logger.info(f"Watch on {kind} cancelled.")
            raise

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
