import logging
from typing import Any, Dict, List, Optional

from .interfaces import AbstractConfigChannel, ChangeHandler

logger = logging.getLogger("cohortkit.channel")


class InMemoryConfigChannel(AbstractConfigChannel):
    def __init__(self, values: Dict[str, Any] = None) -> None:
        self._values: Dict[str, Any] = dict(values or {})
        self._handlers: Dict[str, List[ChangeHandler]] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._values.get(key, None)

    def set(self, key: str, value: Any) -> None:
        if value is None:
            return self.delete(key)
        if key in self._values and self._values[key] == value:
            return None
        self._values[key] = value
        self._notify(key, value)

    def delete(self, key: str) -> None:
        if key not in self._values:
            return
        del self._values[key]
        self._notify(key, None)

    def subscribe(self, key: str, handler: ChangeHandler) -> None:
        handlers = self._handlers.setdefault(key, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, key: str, handler: ChangeHandler) -> None:
        handlers = self._handlers.get(key, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(key, None)

    def handlers(self, key: str) -> List[ChangeHandler]:
        return list(self._handlers.get(key, []))

    def _notify(self, key: str, value: Any) -> None:
        # Copy, a handler may unsubscribe itself
        for handler in list(self._handlers.get(key, [])):
            try:
                handler(key, value)
            except Exception as e:
                logger.warning(f"Error in change handler for {key}: {e}")
