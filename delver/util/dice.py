"""
Dice rolling for level generation.

Generation code thinks in tabletop terms ("roll 1d6, on a 1 place gravel"), so
this module provides two entry points:

1.  `roll_dice(rng, n, sides)`: roll N dice of M sides against an explicit
    random stream. This is what every generation layer uses.

2.  The `Dice` class: parses notation such as "2d6+1", "-d4" or "15" and
    rolls it against an explicit stream. Spawn raws use it for per-entry
    quantity expressions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from delver.util.rng import RNG


def roll_dice(rng: RNG, n: int, sides: int) -> int:
    """Roll ``n`` dice with ``sides`` faces and return the total.

    Raises:
        ValueError: If ``sides`` is not a positive integer or ``n`` is negative.
    """
    if sides <= 0:
        raise ValueError("Number of sides must be a positive integer.")
    if n < 0:
        raise ValueError("Number of dice cannot be negative.")
    return sum(rng.randint(1, sides) for _ in range(n))


class Dice:
    """Dice parsed from a string representation such as "d20" or "2d10+15"."""

    def __init__(self, dice_str: str) -> None:
        """Initialize a Dice object from a string representation.

        Raises:
            ValueError: If the dice string format is invalid
        """
        self.dice_str = dice_str
        self.num_dice, self.sides, self.multiplier, self.modifier = (
            self._parse_dice_str(dice_str)
        )

    def _parse_dice_str(self, dice_str: str) -> tuple[int, int, int, int]:
        """Parse a dice string into (number of dice, sides, multiplier, modifier)."""
        dice_str = dice_str.replace(" ", "")

        modifier = 0
        dice_part = dice_str

        try:
            if "+" in dice_str:
                dice_part, mod_part = dice_str.split("+", 1)
                modifier = int(mod_part)
            elif "-" in dice_str and not dice_str.startswith("-"):
                # A leading minus negates the dice instead of marking a modifier
                dice_part, mod_part = dice_str.split("-", 1)
                modifier = -int(mod_part)

            # Fixed values ("5", "-3"): num_dice=0 means no roll
            if dice_part.lstrip("-").isdigit():
                return 0, int(dice_part), 0, modifier

            if dice_part.startswith("-d"):
                return 1, int(dice_part[2:]), -1, modifier

            if "d" in dice_part:
                count, sides = dice_part.split("d")
                return int(count) if count else 1, int(sides), 1, modifier
        except ValueError as exc:
            raise ValueError(f"Invalid dice format: {dice_str}") from exc

        raise ValueError(f"Invalid dice format: {dice_str}")

    def roll(self, rng: RNG) -> int:
        """Roll the dice against ``rng`` and return the result."""
        if self.num_dice == 0:
            return self.sides + self.modifier
        return self.multiplier * roll_dice(rng, self.num_dice, self.sides) + (
            self.modifier
        )

    def __str__(self) -> str:
        return self.dice_str
