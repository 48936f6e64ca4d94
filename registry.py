# registry.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from client_filter import ClientFilter
from models import StreamCategory


log = logging.getLogger(__name__)


class ConnectionRegistry:
    """Approved, still-alive streams per category, each mapped to its canonical client label."""

    def __init__(self, client_filter: ClientFilter) -> None:
        self._filter = client_filter
        self._connections: Dict[StreamCategory, Dict[int, str]] = {c: {} for c in StreamCategory}

    def record_new(self, category: StreamCategory, handle: int, label: Optional[str]) -> bool:
        if not self._filter.approve(label):
            log.debug("bad client (%s, %d): %s", category.value, handle, label)
            return False
        name = self._filter.canonical(label or "")
        self._connections[category][handle] = name
        log.info("NEW: %s / %d / %s", category.value, handle, name)
        return True

    def record_remove(self, category: StreamCategory, handle: int) -> bool:
        name = self._connections[category].pop(handle, None)
        if name is None:
            return False
        log.info("REMOVE: %s / %d / %s", category.value, handle, name)
        return True

    def handles(self, category: StreamCategory) -> List[int]:
        return sorted(self._connections[category])

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, tuple) or len(item) != 2:
            return False
        category, handle = item
        return category in self._connections and handle in self._connections[category]

    def is_in_call(self) -> bool:
        return all(self._connections[c] for c in StreamCategory)

    def is_idle(self) -> bool:
        return not any(self._connections[c] for c in StreamCategory)

    def is_released(self) -> bool:
        """
        True once every caller is done: a persistent speaker user may keep playback
        open but not both categories, anyone else must hold nothing.
        """
        used: Dict[str, Set[StreamCategory]] = {}
        for category, conns in self._connections.items():
            for name in conns.values():
                used.setdefault(name, set()).add(category)

        for name, categories in used.items():
            if self._filter.is_persistent_speaker_user(name):
                if len(categories) == len(StreamCategory):
                    return False
            elif categories:
                return False
        return True
