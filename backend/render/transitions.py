"""Attribute tweens with easing, tagged by structure key so a rebuild can cancel them."""

import math
from collections.abc import Callable
from dataclasses import dataclass

type Easing = Callable[[float], float]


def linear(t: float) -> float:
    return t


def quad_out(t: float) -> float:
    return t * (2 - t)


def elastic_out(period: float = 0.3, amplitude: float = 1.0) -> Easing:
    """Elastic ease-out: overshoots and settles on 1."""
    amplitude = max(1.0, amplitude)
    p = period / (2 * math.pi)
    s = math.asin(1 / amplitude) * p

    def ease(t: float) -> float:
        # 2 ** -10t, shifted so the curve ends exactly on 1
        decay = (2 ** (-10 * t) - 0.0009765625) * 1.0009775171065494
        return 1 - amplitude * decay * math.sin((t + s) / p)

    return ease


@dataclass
class Tween:
    start_value: float
    end_value: float
    start_time: float  # seconds
    duration: float  # seconds
    easing: Easing
    structure_key: str

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return min(max((now - self.start_time) / self.duration, 0.0), 1.0)

    def value_at(self, now: float) -> float:
        t = self.progress(now)
        if t >= 1.0:
            return self.end_value
        return self.start_value + (self.end_value - self.start_value) * self.easing(t)

    def done(self, now: float) -> bool:
        return self.progress(now) >= 1.0


class TransitionGroup:
    """Running tweens keyed by attribute target (e.g. ``"SB1:radius"``).

    Starting a tween on a target that is still animating interrupts it and
    continues from the current value.
    """

    def __init__(self) -> None:
        self._tweens: dict[str, Tween] = {}

    def __len__(self) -> int:
        return len(self._tweens)

    def start(
        self,
        target: str,
        from_value: float,
        to_value: float,
        now: float,
        duration: float,
        easing: Easing,
        structure_key: str,
    ) -> None:
        running = self._tweens.get(target)
        if running is not None:
            from_value = running.value_at(now)
        if duration <= 0 or from_value == to_value:
            self._tweens.pop(target, None)
            return
        self._tweens[target] = Tween(from_value, to_value, now, duration, easing, structure_key)

    def value(self, target: str, now: float, default: float) -> float:
        tween = self._tweens.get(target)
        if tween is None:
            return default
        return tween.value_at(now)

    def prune(self, now: float) -> int:
        finished = [target for target, tween in self._tweens.items() if tween.done(now)]
        for target in finished:
            del self._tweens[target]
        return len(finished)

    def cancel_stale(self, structure_key: str, prefix: str = "") -> int:
        """Drop tweens under ``prefix`` whose structure key differs from ``structure_key``."""
        stale = [
            target
            for target, tween in self._tweens.items()
            if target.startswith(prefix) and tween.structure_key != structure_key
        ]
        for target in stale:
            del self._tweens[target]
        return len(stale)

    def cancel_prefix(self, prefix: str) -> int:
        targets = [target for target in self._tweens if target.startswith(prefix)]
        for target in targets:
            del self._tweens[target]
        return len(targets)

    def cancel_all(self) -> None:
        self._tweens.clear()
