from abc import abstractmethod, ABC
from typing import Any, Callable, List, Optional

ChangeHandler = Callable[[str, Any], None]


class AbstractAssignmentStore(ABC):
    """Durable key-value storage for assignment records and the override flag.

    One store instance is one namespace: ``clear`` must only remove what
    this instance owns. ``None`` is never stored; it means "absent".
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        """
        List stored keys.

        Args:
            prefix: Only return keys starting with this prefix

        Returns:
            The matching keys, in insertion order
        """
        pass

    def clear(self) -> None:
        for key in self.keys():
            self.delete(key)


class AbstractConfigChannel(ABC):
    """Live, observable key-value namespace an operator can change at runtime."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def subscribe(self, key: str, handler: ChangeHandler) -> None:
        """
        Register ``handler`` for changes to ``key``.

        Handlers are called as ``handler(key, value)``, with ``value``
        set to None when the entry was removed.
        """
        pass

    @abstractmethod
    def unsubscribe(self, key: str, handler: ChangeHandler) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass
