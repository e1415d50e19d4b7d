"""
Per-subdomain session partitioning.
"""

import logging
from collections.abc import MutableMapping
from typing import Any, Callable, Iterator, Mapping, Optional

from .exceptions import RestrictedSubdomainError

logger = logging.getLogger(__name__)


def _default_symbol() -> Optional[str]:
    from .middleware import current_subdomain_symbol

    return current_subdomain_symbol()


class PartitionedSession(MutableMapping):
    """
    Session adapter that keeps each subdomain's data in its own sub-dict.

    With a subdomain active, keys are read from and written to
    ``store[symbol]``. With no subdomain the backing session is used as
    is. The backing store is any Django ``SessionBase``.
    """

    def __init__(self, store: Any, symbol_getter: Optional[Callable[[], Optional[str]]] = None):
        self._store = store
        self._symbol_getter = symbol_getter or _default_symbol

    @property
    def store(self) -> Any:
        return self._store

    @property
    def symbol(self) -> Optional[str]:
        return self._symbol_getter()

    def _partition_for(self, symbol: str) -> dict:
        if symbol not in self._store:
            self._store[symbol] = {}
        partition = self._store[symbol]
        if not isinstance(partition, dict):
            raise RestrictedSubdomainError(
                f"Session key {symbol!r} holds a global value, not the "
                f"partition of subdomain {symbol!r}"
            )
        return partition

    @property
    def partition(self) -> Any:
        symbol = self.symbol
        if symbol is None:
            return self._store
        return self._partition_for(symbol)

    def _touch(self) -> None:
        if self.symbol is not None:
            self._store.modified = True

    def __getitem__(self, key: str) -> Any:
        return self.partition[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.partition[key] = value
        self._touch()

    def __delitem__(self, key: str) -> None:
        del self.partition[key]
        self._touch()

    def __contains__(self, key: object) -> bool:
        return key in self.partition

    def __iter__(self) -> Iterator[str]:
        return iter(list(self.partition.keys()))

    def __len__(self) -> int:
        return len(list(self.partition.keys()))

    def replace(self, values: Mapping[str, Any]) -> None:
        """Replace the whole active partition with ``values``."""
        symbol = self.symbol
        if symbol is None:
            self._store.clear()
            self._store.update(dict(values))
            return
        self._partition_for(symbol)
        self._store[symbol] = dict(values)

    def cycle_key(self) -> None:
        self._store.cycle_key()

    def flush(self) -> None:
        """
        Reset the session, keeping every other subdomain's partition.

        The session key is regenerated and the active subdomain starts
        with an empty partition. Without a subdomain the whole session is
        flushed.
        """
        symbol = self.symbol
        if symbol is None:
            self._store.flush()
            return
        self._partition_for(symbol)
        kept = {key: value for key, value in self._store.items() if key != symbol}
        self._store.flush()
        for key, value in kept.items():
            self._store[key] = value
        logger.debug("Flushed session partition %r, kept %d keys", symbol, len(kept))
