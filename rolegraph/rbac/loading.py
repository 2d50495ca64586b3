"""
On-demand population of the role graph.

Before a check runs, the coordinator notifies its listeners in two ordered
phases, ``LOAD_ROLES`` then ``LOAD_PERMISSIONS``, handing each one the same
``LoadContext``. The context names the roles and the permission the check is
about, so a listener backed by a database can fetch only those rows. A
listener is free to ignore the hints and load everything.

The load happens once per coordinator unless ``force_reload`` is set.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .graph import RoleGraph

logger = logging.getLogger(__name__)


class LoadEvent(str, enum.Enum):
    """Load phases, listed in dispatch order."""

    LOAD_ROLES = "rbac.load.roles"
    LOAD_PERMISSIONS = "rbac.load.permissions"


@dataclass(frozen=True)
class LoadContext:
    """
    What a single authorization check needs from the load listeners.

    ``force_reload`` tells listeners whether another load will run before the
    next check; when it is False this load is the only one.
    """

    graph: RoleGraph
    roles: tuple[str, ...] = ()
    permission: str = ""
    force_reload: bool = False


LoadListener = Callable[[LoadContext], None]


class LoadCoordinator:
    """Dispatches load phases to registered listeners, at most once by default."""

    def __init__(self, graph: RoleGraph, force_reload: bool = False) -> None:
        self._graph = graph
        self._force_reload = bool(force_reload)
        self._loaded = False
        self._listeners: dict[LoadEvent, list[LoadListener]] = {event: [] for event in LoadEvent}
        self._loading = False
        self._lock = threading.RLock()

    @property
    def graph(self) -> RoleGraph:
        return self._graph

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def force_reload(self) -> bool:
        return self._force_reload

    @force_reload.setter
    def force_reload(self, value: bool) -> None:
        self._force_reload = bool(value)

    def attach(self, event: LoadEvent, listener: LoadListener) -> None:
        self._listeners[LoadEvent(event)].append(listener)

    def listeners(self, event: LoadEvent) -> tuple[LoadListener, ...]:
        return tuple(self._listeners[LoadEvent(event)])

    def reset(self) -> None:
        """Forget that a load happened; the next ``load`` call runs again."""
        with self._lock:
            self._loaded = False

    def load(self, roles: Iterable[str] = (), permission: str = "") -> None:
        """
        Run both load phases unless the graph is already loaded.

        Listener errors propagate and leave the coordinator unloaded, so a
        partially filled graph is never reported as loaded. A listener that
        calls back into the service while loading sees the graph as it is so
        far; the nested call returns without dispatching again.
        """

        with self._lock:
            if self._loading:
                logger.debug("RBAC: nested load ignored (load already in progress)")
                return
            if self._loaded and not self._force_reload:
                return

            context = LoadContext(
                graph=self._graph,
                roles=tuple(roles),
                permission=permission or "",
                force_reload=self._force_reload,
            )
            logger.debug("RBAC: loading roles=%s permission=%s", list(context.roles), context.permission)

            self._loading = True
            try:
                for event in (LoadEvent.LOAD_ROLES, LoadEvent.LOAD_PERMISSIONS):
                    for listener in self._listeners[event]:
                        listener(context)
            finally:
                self._loading = False

            self._loaded = True
            logger.debug("RBAC: load complete graph_size=%s", len(self._graph))
