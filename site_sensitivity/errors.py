# errors.py
from typing import Optional


class ShapeMismatchError(ValueError):
    """Grids taking part in one operation differ in dimensions or geometry."""


class RangeError(ValueError):
    """A finite cell value matched zero or several breakpoint intervals."""

    def __init__(self, value: float, matches: int, variable: Optional[str] = None):
        self.value = float(value)
        self.matches = int(matches)
        self.variable = variable
        where = f" in table '{variable}'" if variable else ""
        kind = "no interval" if matches == 0 else f"{matches} overlapping intervals"
        super().__init__(f"Value {self.value!r} matched {kind}{where}.")


class DegenerateSampleWarning(UserWarning):
    """Labeled sample has no positive or no negative rows."""
