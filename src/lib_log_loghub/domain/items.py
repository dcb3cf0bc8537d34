"""The structured record submitted to Loghub for each log event."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field


@dataclass(slots=True)
class LogItem:
    """Ordered key/value contents plus the event time in epoch seconds.

    Keys may repeat; the ingestion service keeps every pair in insertion
    order, so :meth:`push_back` never overwrites.

    Examples
    --------
    >>> item = LogItem(time=1_700_000_000)
    >>> item.push_back("level", "INFO")
    >>> item.push_back("message", "hello")
    >>> item.keys()
    ['level', 'message']
    >>> item.get("message")
    'hello'
    """

    time: int = 0
    contents: list[tuple[str, str]] = field(default_factory=list)

    def push_back(self, key: str, value: str) -> None:
        """Append ``key``/``value`` after the existing contents."""

        self.contents.append((str(key), str(value)))

    def keys(self) -> list[str]:
        return [key for key, _ in self.contents]

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the first value stored under ``key``."""

        for existing, value in self.contents:
            if existing == key:
                return value
        return default

    def to_dict(self) -> dict[str, str]:
        """Collapse contents into a dict; later duplicates win."""

        return dict(self.contents)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self.contents)

    def __len__(self) -> int:
        return len(self.contents)


__all__ = ["LogItem"]
