"""Tests for the snapshot data model and its JSON form."""

import json

import pytest
from pydantic import ValidationError

from engine.models import (
    EntityRecord,
    Quantity,
    QuantitySlot,
    Snapshot,
    StatSample,
    WindowKey,
    quantity_for_name,
)


class TestWindowKey:
    def test_structural_equality(self):
        assert WindowKey(1, 2) == WindowKey(1, 2)
        assert hash(WindowKey(1, 2)) == hash(WindowKey(1, 2))
        assert WindowKey(1, 2) != WindowKey(1, 3)

    def test_end(self):
        assert WindowKey(10, 5).end_ns == 15


class TestQuantityNames:
    @pytest.mark.parametrize(
        "name,quantity",
        [
            ("air_temp", Quantity.TEMPERATURE),
            ("air_rh", Quantity.HUMIDITY),
            ("presence", Quantity.PRESENCE),
            ("lux", Quantity.ILLUMINANCE),
        ],
    )
    def test_known(self, name, quantity):
        assert quantity_for_name(name) is quantity

    def test_unknown_and_non_string(self):
        assert quantity_for_name("co2") is None
        assert quantity_for_name(None) is None


class TestStatSample:
    def test_empty(self):
        s = StatSample.empty()
        assert (s.min, s.mean, s.max, s.count) == (0.0, 0.0, 0.0, 0)
        assert not s.present

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            StatSample(count=-1)

    def test_frozen(self):
        with pytest.raises(ValidationError):
            StatSample().count = 3


class TestSnapshotJson:
    def test_record_fields(self):
        record = EntityRecord(
            id="S1",
            rcoord_x=1.0,
            rcoord_y=2.0,
            slots={
                Quantity.TEMPERATURE: QuantitySlot(
                    stream_id="u1", sample=StatSample(min=18.0, mean=20.0, max=22.0, count=10)
                )
            },
        )
        out = record.to_json_dict()
        assert out["ID"] == "S1"
        assert out["temp_min"] == 18.0
        assert out["temp_count"] == 10
        assert out["lux_count"] == 0
        assert "presence_min" not in out
        assert "presence_mean" in out
        assert not any("stream" in k or "uuid" in k for k in out)

    def test_json_bytes_indented(self):
        snap = Snapshot(window_start=5, window_length=7, data={})
        raw = snap.json_bytes()
        assert b"\n" in raw
        assert json.loads(raw) == {"window_start": 5, "window_length": 7, "data": {}}
        assert snap.key == WindowKey(5, 7)

    def test_cached_mappings_are_read_only(self):
        record = EntityRecord(id="S1", rcoord_x=1.0, rcoord_y=2.0, slots={Quantity.ILLUMINANCE: QuantitySlot()})
        snap = Snapshot(window_start=5, window_length=7, data={"S1": record})
        with pytest.raises(TypeError):
            snap.data["S2"] = record
        with pytest.raises(TypeError):
            del snap.data["S1"]
        with pytest.raises(TypeError):
            snap.data["S1"].slots[Quantity.TEMPERATURE] = QuantitySlot()
        assert snap.data["S1"] is record

    def test_source_dict_changes_do_not_leak_in(self):
        source = {}
        snap = Snapshot(window_start=5, window_length=7, data=source)
        source["S1"] = EntityRecord(id="S1", rcoord_x=0.0, rcoord_y=0.0)
        assert "S1" not in snap.data
