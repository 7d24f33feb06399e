"""Metadata/statistics join — folds store results into one record per sensor."""

from dataclasses import dataclass, field
from typing import Any

import structlog

from engine.errors import MalformedMetadataItem
from engine.models import EntityRecord, Quantity, QuantitySlot, StatSample, quantity_for_name
from engine.resolvers import MetadataItem, StatisticsItem

PATH_SEGMENTS = 7
IDENTITY_SEGMENT = 3

_MISSING = object()


def lookup_attribute(attributes: dict[str, Any], name: str, expected: type) -> Any:
    """Typed lookup into the free-form attribute bag.

    Absent and wrong-typed attributes are reported separately but both
    raise MalformedMetadataItem.
    """
    value = attributes.get(name, _MISSING)
    if value is _MISSING:
        raise MalformedMetadataItem(f"no {name}")
    if not isinstance(value, expected):
        raise MalformedMetadataItem(f"odd {name} type {type(value).__name__}")
    return value


def parse_coordinates(attributes: dict[str, Any], name: str) -> tuple[float, float]:
    raw = lookup_attribute(attributes, name, str)
    parts = raw.split(",")
    if len(parts) != 2:
        raise MalformedMetadataItem(f"bad {name} {raw!r}")
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        raise MalformedMetadataItem(f"bad {name} {raw!r}") from None


def entity_id_from_path(path: str) -> str:
    segments = path.split("/")
    if len(segments) != PATH_SEGMENTS:
        raise MalformedMetadataItem(f"bad path ({len(segments)} segments)")
    return segments[IDENTITY_SEGMENT]


@dataclass
class EntityDraft:
    """Mutable record used while folding metadata; frozen into an EntityRecord at the end."""

    id: str
    rcoord_x: float
    rcoord_y: float
    stream_ids: dict[Quantity, str] = field(default_factory=dict)


@dataclass
class JoinSummary:
    entities: int = 0
    skipped: int = 0
    populated: dict[Quantity, int] = field(default_factory=dict)


class SnapshotJoiner:
    """
    Two-phase join.

    Phase 1 groups metadata items by the sensor identity in the path. The first
    valid item seen for an identity fixes that sensor's coordinates; later items
    only attach stream ids. Phase 2 copies the first bucket of each matching
    statistics item into the sensor's slots.
    """

    def __init__(self, coordinate_attribute: str, name_attribute: str, log: structlog.BoundLogger):
        self.coordinate_attribute = coordinate_attribute
        self.name_attribute = name_attribute
        self.log = log

    def resolve_entities(self, items: list[MetadataItem]) -> tuple[dict[str, EntityDraft], JoinSummary]:
        drafts: dict[str, EntityDraft] = {}
        summary = JoinSummary()
        for item in items:
            try:
                x, y = parse_coordinates(item.attributes, self.coordinate_attribute)
                entity_id = entity_id_from_path(item.path)
            except MalformedMetadataItem as e:
                summary.skipped += 1
                self.log.warning(
                    "metadata_item_skipped",
                    reason=e.reason,
                    path=item.path,
                    stream_id=item.stream_id,
                )
                continue

            draft = drafts.get(entity_id)
            if draft is None:
                draft = EntityDraft(id=entity_id, rcoord_x=x, rcoord_y=y)
                drafts[entity_id] = draft

            quantity = quantity_for_name(item.attributes.get(self.name_attribute))
            if quantity is not None:
                draft.stream_ids[quantity] = item.stream_id

        summary.entities = len(drafts)
        return drafts, summary

    @staticmethod
    def stream_ids(drafts: dict[str, EntityDraft]) -> list[str]:
        """Union of every resolved stream id, sorted so the batched query is stable."""
        return sorted({sid for d in drafts.values() for sid in d.stream_ids.values()})

    def apply_statistics(
        self,
        drafts: dict[str, EntityDraft],
        stats: list[StatisticsItem],
        summary: JoinSummary | None = None,
    ) -> dict[str, EntityRecord]:
        summary = summary or JoinSummary()
        records: dict[str, EntityRecord] = {}
        for entity_id, draft in drafts.items():
            slots: dict[Quantity, QuantitySlot] = {}
            for quantity, stream_id in draft.stream_ids.items():
                sample = StatSample.empty()
                item = _find_stat(stats, stream_id)
                if item is not None and item.has_points:
                    sample = StatSample(
                        min=item.min[0] if item.min else 0.0,
                        mean=item.mean[0],
                        max=item.max[0] if item.max else 0.0,
                        count=item.count[0] if item.count else 0,
                    )
                    summary.populated[quantity] = summary.populated.get(quantity, 0) + 1
                slots[quantity] = QuantitySlot(stream_id=stream_id, sample=sample)
            records[entity_id] = EntityRecord(
                id=draft.id,
                rcoord_x=draft.rcoord_x,
                rcoord_y=draft.rcoord_y,
                slots=slots,
            )
        self.log.info(
            "join_complete",
            entities=len(records),
            skipped=summary.skipped,
            ntemp=summary.populated.get(Quantity.TEMPERATURE, 0),
            nhum=summary.populated.get(Quantity.HUMIDITY, 0),
        )
        return records


def _find_stat(stats: list[StatisticsItem], stream_id: str) -> StatisticsItem | None:
    for item in stats:
        if item.stream_id == stream_id:
            return item
    return None
