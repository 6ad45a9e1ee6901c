from __future__ import annotations

from typing import AbstractSet, Iterable, Optional, Tuple

from habitstreak.models.habit import Habit

CompletionOverride = Tuple[str, AbstractSet[str]]


def all_complete(
    habits: Iterable[Habit],
    day: str,
    override: Optional[CompletionOverride] = None,
) -> bool:
    """
    True iff every habit has ``day`` among its completions.

    ``override`` is ``(habit_id, completions)``: that habit is judged by the given
    completions instead of its stored ones, so a pending update can be evaluated
    before it is written. An empty habit set is never complete.
    """
    seen_any = False
    for habit in habits:
        seen_any = True
        completions = habit.completions
        if override is not None and habit.id == override[0]:
            completions = override[1]
        if day not in completions:
            return False
    return seen_any
