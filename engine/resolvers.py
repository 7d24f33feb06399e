"""Boundaries to the time-series store: metadata lookup and windowed statistics."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MetadataQuery:
    """Select every stream that has `required_attribute` and a path matching `path_pattern`."""

    required_attribute: str
    path_pattern: str

    def matches(self, path: str, attributes: dict[str, Any]) -> bool:
        return self.required_attribute in attributes and re.search(self.path_pattern, path) is not None


@dataclass
class MetadataItem:
    stream_id: str
    path: str
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass
class StatisticsItem:
    """Per-stream aggregates, one entry per returned bucket."""

    stream_id: str
    min: list[float] = field(default_factory=list)
    mean: list[float] = field(default_factory=list)
    max: list[float] = field(default_factory=list)
    count: list[int] = field(default_factory=list)

    @property
    def has_points(self) -> bool:
        return len(self.mean) >= 1


class MetadataResolver(ABC):
    @abstractmethod
    def resolve_entities(self, query: MetadataQuery) -> list[MetadataItem]:
        """Return every stream selected by the query. Raises on store failure."""


class StatisticsResolver(ABC):
    @abstractmethod
    def resolve_statistics(
        self, stream_ids: list[str], start_ns: int, length_ns: int
    ) -> list[StatisticsItem]:
        """Return one bucket spanning [start, start + length) for each stream, in one batched query."""
