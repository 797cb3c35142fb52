from __future__ import annotations
from datetime import datetime
from models import Difficulty


def is_optimal_time_for_difficulty(instant: datetime, difficulty: Difficulty) -> bool:
    hour = instant.hour

    # Hard topics: morning focus or early evening
    if difficulty == Difficulty.HARD:
        return 8 <= hour <= 12 or 18 <= hour <= 20

    # Medium topics: anything but very early or very late
    if difficulty == Difficulty.MEDIUM:
        return 9 <= hour <= 22

    return True


def is_good_time_for_review(instant: datetime) -> bool:
    return 14 <= instant.hour <= 21


def is_good_time_for_practice(instant: datetime) -> bool:
    hour = instant.hour
    return 9 <= hour <= 12 or 16 <= hour <= 19
