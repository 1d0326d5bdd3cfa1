from collections import OrderedDict
from typing import Any, Optional


class LRUCache:
    """Bounded memo of search passes keyed by the normalized query."""

    def __init__(self, capacity: int = 128):
        self.capacity = capacity
        self.data: "OrderedDict[str, Any]" = OrderedDict()

    def get(self, key: str) -> Optional[Any]:
        if key in self.data:
            self.data.move_to_end(key)
            return self.data[key]
        return None

    def set(self, key: str, value: Any):
        if self.capacity <= 0:
            return
        if key in self.data:
            self.data.move_to_end(key)
        self.data[key] = value
        if len(self.data) > self.capacity:
            self.data.popitem(last=False)
