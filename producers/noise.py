"""Signal generators for simulated building sensors."""

import math
import random


class NoiseGenerator:
    @staticmethod
    def sinusoidal(t: float, period: float = 86400, amplitude: float = 1.0) -> float:
        """Daily cycle. t in seconds since epoch."""
        return amplitude * math.sin(2 * math.pi * t / period)

    @staticmethod
    def gaussian(mean: float = 0.0, std: float = 1.0) -> float:
        return random.gauss(mean, std)

    @staticmethod
    def occupancy(probability: float = 0.3) -> float:
        """1.0 when someone is detected, else 0.0."""
        return 1.0 if random.random() < probability else 0.0

    @staticmethod
    def daylight(t: float, peak: float = 800.0) -> float:
        """Illuminance following the sun, zero at night."""
        return max(0.0, peak * math.sin(2 * math.pi * ((t % 86400) / 86400 - 0.25)))
