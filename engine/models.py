"""Snapshot data model — window keys, per-stream samples, sensor records."""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class WindowKey:
    """Cache key for one query window. Equality is exact on (start, length)."""

    start_ns: int
    length_ns: int

    @property
    def end_ns(self) -> int:
        return self.start_ns + self.length_ns


class Quantity(str, Enum):
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    PRESENCE = "presence"
    ILLUMINANCE = "illuminance"


# Stream "name" attribute in the store → tracked quantity
STREAM_NAMES: dict[str, Quantity] = {
    "air_temp": Quantity.TEMPERATURE,
    "air_rh": Quantity.HUMIDITY,
    "presence": Quantity.PRESENCE,
    "lux": Quantity.ILLUMINANCE,
}

# JSON field prefix and the statistics published for each quantity
JSON_FIELDS: dict[Quantity, tuple[str, tuple[str, ...]]] = {
    Quantity.TEMPERATURE: ("temp", ("min", "max", "mean", "count")),
    Quantity.HUMIDITY: ("humidity", ("min", "mean", "max", "count")),
    Quantity.PRESENCE: ("presence", ("mean", "count")),
    Quantity.ILLUMINANCE: ("lux", ("min", "mean", "max", "count")),
}


def quantity_for_name(name: object) -> Quantity | None:
    """Map a stream name to its quantity. Unknown names are ignored, not errors."""
    if not isinstance(name, str):
        return None
    return STREAM_NAMES.get(name)


def _freeze_mapping(model: BaseModel, name: str):
    # frozen=True only blocks attribute assignment; the mapping itself is shared by readers
    object.__setattr__(model, name, MappingProxyType(dict(getattr(model, name))))


class StatSample(BaseModel):
    """Aggregate of one stream over a window. `count` is the presence indicator."""

    model_config = ConfigDict(frozen=True)

    min: float = 0.0
    mean: float = 0.0
    max: float = 0.0
    count: int = Field(default=0, ge=0)

    @property
    def present(self) -> bool:
        return self.count > 0

    @classmethod
    def empty(cls) -> "StatSample":
        return cls()


class QuantitySlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    stream_id: str | None = None
    sample: StatSample = Field(default_factory=StatSample.empty)


class EntityRecord(BaseModel):
    """One physical sensor with its coordinates and per-quantity slots."""

    model_config = ConfigDict(frozen=True)

    id: str
    rcoord_x: float
    rcoord_y: float
    slots: Mapping[Quantity, QuantitySlot] = Field(default_factory=dict)

    def model_post_init(self, __context):
        _freeze_mapping(self, "slots")

    def slot(self, quantity: Quantity) -> QuantitySlot:
        return self.slots.get(quantity) or QuantitySlot()

    def to_json_dict(self) -> dict:
        out: dict = {"ID": self.id, "rcoord_x": self.rcoord_x, "rcoord_y": self.rcoord_y}
        for quantity, (prefix, stats) in JSON_FIELDS.items():
            sample = self.slot(quantity).sample
            for stat in stats:
                out[f"{prefix}_{stat}"] = getattr(sample, stat)
        return out


class Snapshot(BaseModel):
    """Complete answer for one window. Never mutated once built."""

    model_config = ConfigDict(frozen=True)

    window_start: int = Field(description="Window start, ns since epoch")
    window_length: int = Field(description="Window length in ns")
    data: Mapping[str, EntityRecord] = Field(default_factory=dict)

    def model_post_init(self, __context):
        _freeze_mapping(self, "data")

    @property
    def key(self) -> WindowKey:
        return WindowKey(self.window_start, self.window_length)

    def to_json_dict(self) -> dict:
        return {
            "window_start": self.window_start,
            "window_length": self.window_length,
            "data": {entity_id: rec.to_json_dict() for entity_id, rec in self.data.items()},
        }

    def json_bytes(self) -> bytes:
        return json.dumps(self.to_json_dict(), indent=1).encode("utf-8")
