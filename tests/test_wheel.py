from __future__ import annotations

import random

import pytest

from phonics.wheel import MIN_SPIN_DEGREES, WheelSpinner, compute_final_rotation, landing_index, segment_angle


def test_four_segments_from_rest() -> None:
    assert compute_final_rotation(segment_count=4, winning_index=2, current_rotation=0.0) == 1215.0


def test_rotation_lands_on_winner_for_every_segment() -> None:
    for n in range(1, 9):
        for i in range(n):
            for start in (0.0, 37.5, 1215.0, 5000.25):
                final = compute_final_rotation(segment_count=n, winning_index=i, current_rotation=start)
                assert final >= start + MIN_SPIN_DEGREES
                # Smallest number of whole turns that still clears the minimum.
                assert final - 360.0 < start + MIN_SPIN_DEGREES
                assert landing_index(rotation=final, segment_count=n) == i


def test_spinner_rotation_never_decreases() -> None:
    spinner = WheelSpinner(rng=random.Random(3))
    previous = spinner.rotation
    for _ in range(25):
        idx = spinner.pick_winner(5)
        assert 0 <= idx < 5
        rotation = spinner.spin_to(winning_index=idx, segment_count=5)
        assert rotation >= previous + MIN_SPIN_DEGREES
        assert landing_index(rotation=rotation, segment_count=5) == idx
        previous = rotation


def test_segment_angle() -> None:
    assert segment_angle(4) == 90.0
    assert segment_angle(1) == 360.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"segment_count": 0, "winning_index": 0, "current_rotation": 0.0},
        {"segment_count": 4, "winning_index": 4, "current_rotation": 0.0},
        {"segment_count": 4, "winning_index": -1, "current_rotation": 0.0},
    ],
)
def test_invalid_inputs(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        compute_final_rotation(**kwargs)


def test_pick_winner_requires_segments() -> None:
    with pytest.raises(ValueError):
        WheelSpinner(rng=random.Random(0)).pick_winner(0)
