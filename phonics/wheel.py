from __future__ import annotations

import math
import random


# Three full turns, so every spin is visible whatever the starting angle.
MIN_SPIN_DEGREES = 1080.0


def segment_angle(segment_count: int) -> float:
    if segment_count <= 0:
        raise ValueError("segment_count must be >= 1")
    return 360.0 / segment_count


def compute_final_rotation(*, segment_count: int, winning_index: int, current_rotation: float) -> float:
    """Cumulative rotation that parks the centre of `winning_index` under the top pointer.

    The result is congruent to -(i * angle + angle / 2) mod 360 and is at least
    `current_rotation + MIN_SPIN_DEGREES`, using the smallest whole number of
    turns that satisfies both.
    """

    angle = segment_angle(segment_count)
    if not 0 <= winning_index < segment_count:
        raise ValueError(f"winning_index must be in [0, {segment_count})")

    slice_center = winning_index * angle + angle / 2
    target_base = -slice_center
    turns = math.ceil((current_rotation + MIN_SPIN_DEGREES - target_base) / 360.0)
    return target_base + 360.0 * turns


def landing_index(*, rotation: float, segment_count: int) -> int:
    """Index of the segment sitting under the pointer after `rotation` degrees."""

    angle = segment_angle(segment_count)
    under_pointer = (-rotation) % 360.0
    return int(under_pointer // angle) % segment_count


class WheelSpinner:
    """Keeps the wheel's cumulative rotation; it only ever moves forward."""

    def __init__(self, *, rng: random.Random, rotation: float = 0.0) -> None:
        self._rng = rng
        self.rotation = rotation

    def pick_winner(self, segment_count: int) -> int:
        if segment_count <= 0:
            raise ValueError("segment_count must be >= 1")
        return self._rng.randrange(segment_count)

    def spin_to(self, *, winning_index: int, segment_count: int) -> float:
        self.rotation = compute_final_rotation(
            segment_count=segment_count,
            winning_index=winning_index,
            current_rotation=self.rotation,
        )
        return self.rotation
