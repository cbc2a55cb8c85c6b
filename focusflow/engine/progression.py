from dataclasses import dataclass

from focusflow.errors import ValidationError


def level_for(xp_total: int, xp_per_level: int, max_level: int) -> int:
    return min(xp_total // xp_per_level + 1, max_level)


def level_progress_percent(xp_total: int, xp_per_level: int, max_level: int) -> float:
    if level_for(xp_total, xp_per_level, max_level) >= max_level:
        return 100.0
    return 100 * (xp_total % xp_per_level) / xp_per_level


def xp_for_next_level(xp_total: int, xp_per_level: int, max_level: int) -> int:
    level = level_for(xp_total, xp_per_level, max_level)
    if level >= max_level:
        return 0
    return level * xp_per_level - xp_total


@dataclass(frozen=True)
class LevelChange:
    previous_level: int
    new_level: int
    xp_total: int

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.previous_level


def validate_xp_amount(amount) -> int:
    # bool is an int subclass; True is not an XP amount
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError(f"XP amount must be a positive integer, got {amount!r}")
    return amount


class ProgressionLedger:
    """Applies XP grants to a progression record in place.

    ``state`` is anything with ``xp_total`` and ``level`` attributes, normally
    a ``Progression`` row. XP is never rounded away: the level is always
    recomputed from the full total.
    """

    def __init__(self, state, xp_per_level: int, max_level: int):
        self.state = state
        self.xp_per_level = xp_per_level
        self.max_level = max_level

    def grant(self, amount: int) -> LevelChange:
        validate_xp_amount(amount)
        previous_level = self.state.level
        self.state.xp_total += amount
        self.state.level = max(
            previous_level,
            level_for(self.state.xp_total, self.xp_per_level, self.max_level),
        )
        return LevelChange(previous_level, self.state.level, self.state.xp_total)

    @property
    def progress_percent(self) -> float:
        return level_progress_percent(self.state.xp_total, self.xp_per_level, self.max_level)
