"""Simulated Hamilton sensors — registers stream metadata and writes readings to Redis."""

import random
import uuid
from dataclasses import dataclass, field

from config import Settings
from producers.base_producer import BaseProducer
from producers.noise import NoiseGenerator
from storage.archiver import MetadataRegistry

PATH_TEMPLATE = "hamilton/sensors/s.hamilton/{sensor_id}/i.temperature/signal/operative"

STREAM_PROFILES = {
    "air_temp": {"baseline": 21.5, "amplitude": 2.0, "noise_std": 0.3},
    "air_rh": {"baseline": 45.0, "amplitude": 5.0, "noise_std": 1.5},
    "presence": {},
    "lux": {"peak": 650.0, "noise_std": 25.0},
}


@dataclass
class SimulatedSensor:
    sensor_id: str
    x: float
    y: float
    streams: dict[str, str] = field(default_factory=dict)  # name → stream id

    @property
    def path(self) -> str:
        return PATH_TEMPLATE.format(sensor_id=self.sensor_id)

    def simulate(self, name: str, t: float) -> float:
        profile = STREAM_PROFILES[name]
        if name == "presence":
            return NoiseGenerator.occupancy(0.3)
        if name == "lux":
            return round(NoiseGenerator.daylight(t, profile["peak"]) + abs(NoiseGenerator.gaussian(0, profile["noise_std"])), 1)
        value = profile["baseline"]
        value += NoiseGenerator.sinusoidal(t, amplitude=profile["amplitude"])
        value += NoiseGenerator.gaussian(0, profile["noise_std"])
        return round(value, 2)


class HamiltonProducer(BaseProducer):
    def __init__(self, settings: Settings):
        super().__init__(settings, "hamilton-producer")
        self.sensors = self._init_sensors(settings.producer_num_sensors)
        self._interval = settings.producer_interval_ms / 1000.0
        self._registry = MetadataRegistry(self._redis)

    def _init_sensors(self, count: int) -> list[SimulatedSensor]:
        sensors = []
        for i in range(count):
            sensor = SimulatedSensor(
                sensor_id=f"{0x1000 + i:04x}",
                x=round(random.uniform(0, 40), 2),
                y=round(random.uniform(0, 20), 2),
            )
            sensor.streams = {name: str(uuid.uuid4()) for name in STREAM_PROFILES}
            sensors.append(sensor)
        return sensors

    def setup(self):
        for sensor in self.sensors:
            for name, stream_id in sensor.streams.items():
                self._registry.register(
                    stream_id,
                    sensor.path,
                    {
                        self.settings.coordinate_attribute: f"{sensor.x},{sensor.y}",
                        self.settings.name_attribute: name,
                    },
                )
        self.log.info("sensors_registered", count=len(self.sensors))

    def generate_readings(self, now_ms: float) -> list[tuple[str, float]]:
        t = now_ms / 1000.0
        return [
            (stream_id, sensor.simulate(name, t))
            for sensor in self.sensors
            for name, stream_id in sensor.streams.items()
        ]

    def get_interval(self) -> float:
        return self._interval * (0.8 + random.random() * 0.4)


if __name__ == "__main__":
    settings = Settings()
    producer = HamiltonProducer(settings)
    producer.run()
