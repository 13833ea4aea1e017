"""Motivational phrases shown at lifecycle events.

Phrases are fetched in batches and served from a per-type cache.  The feed
is strictly best effort: any failure falls back to a fixed phrase so the
caller always gets something to display.
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Callable, Iterable, Optional


class KudosType(Enum):
    WORKOUT_START = "WORKOUT_START"
    EXERCISE_COMPLETE = "EXERCISE_COMPLETE"
    REST_START = "REST_START"
    REST_COMPLETE = "REST_COMPLETE"
    WORKOUT_COMPLETE = "WORKOUT_COMPLETE"
    NEXT_EXERCISE = "NEXT_EXERCISE"
    PERSONAL_RECORD = "PERSONAL_RECORD"


DEFAULT_PHRASES: dict[KudosType, str] = {
    KudosType.WORKOUT_START: "Let's get this workout started!",
    KudosType.WORKOUT_COMPLETE: "Workout complete! Amazing job!",
    KudosType.EXERCISE_COMPLETE: "Exercise complete! Well done!",
    KudosType.REST_START: "Time to rest those muscles!",
    KudosType.REST_COMPLETE: "Rest complete! Back to work!",
    KudosType.NEXT_EXERCISE: "On to the next exercise!",
    KudosType.PERSONAL_RECORD: "New personal record! Incredible!",
}

# Number of phrases requested when the cache for a type runs dry
FETCH_BATCH = 10


class KudosFeed:
    def __init__(
        self,
        fetch: Optional[Callable[[KudosType, int], list[str]]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.fetch = fetch
        self._rng = rng or random.Random()
        self._cache: dict[KudosType, list[str]] = {}

    @staticmethod
    def default_phrase(kind: KudosType) -> str:
        return DEFAULT_PHRASES[kind]

    def get_phrase(self, kind: KudosType) -> str:
        cached = self._cache.get(kind)
        if cached:
            return cached.pop(self._rng.randrange(len(cached)))

        if self.fetch is None:
            return self.default_phrase(kind)
        try:
            phrases = [p for p in self.fetch(kind, FETCH_BATCH) if p]
        except Exception:
            logging.exception("Failed to fetch kudos phrase for %s", kind.value)
            return self.default_phrase(kind)

        if not phrases:
            return self.default_phrase(kind)
        if len(phrases) > 1:
            self._cache[kind] = phrases[1:]
        return phrases[0]

    def prefetch(self, kinds: Iterable[KudosType], count: int = 5) -> None:
        """Fill the cache ahead of time; failures are only logged."""

        if self.fetch is None:
            return
        for kind in kinds:
            try:
                phrases = [p for p in self.fetch(kind, count) if p]
            except Exception:
                logging.exception("Failed to prefetch kudos for %s", kind.value)
                continue
            self._cache[kind] = phrases

    def clear_cache(self) -> None:
        self._cache.clear()
