"""Generic Wave Function Collapse solver.

This module provides a reusable WFC solver that can be used with any pattern set.
The solver is pattern-agnostic - it takes any dict[PatternType, WFCPattern] and
solves the constraint satisfaction problem.

Usage:
    from delver.environment.generators.wfc_solver import WFCSolver, WFCPattern

    # Define patterns with adjacency rules
    patterns = {
        0: WFCPattern(0, weight=3.0, valid_neighbors={"N": {0, 1}, ...}),
        1: WFCPattern(1, weight=1.0, valid_neighbors={"N": {0}, ...}),
    }

    # Create and run solver
    solver = WFCSolver(width, height, patterns, rng)
    result = solver.solve()  # Returns grid of pattern IDs, indexed [x][y]

Representation:
    The wave is a boolean numpy array of shape (width, height, num_patterns);
    ``wave[x, y, i]`` is True while pattern ``i`` is still possible at (x, y).
    Adjacency rules are precomputed per direction as a (num_patterns,
    num_patterns) boolean matrix, so propagating from a cell is a single
    ``any`` over the rows of its remaining candidates. There is no limit on
    the number of patterns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from delver.util.rng import RNG


class WFCContradiction(Exception):
    """Raised when WFC reaches an unsolvable state.

    This occurs when constraint propagation eliminates all possibilities
    for a cell, meaning no valid solution exists with the current constraints.
    """


@dataclass
class WFCPattern[PatternType]:
    """A single WFC pattern with adjacency rules.

    Attributes:
        pattern_id: Unique identifier for this pattern.
        weight: Relative probability weight for selection (higher = more common).
        valid_neighbors: Dict mapping direction ("N", "E", "S", "W") to sets of
            pattern IDs that can be adjacent in that direction.
    """

    pattern_id: PatternType
    weight: float = 1.0
    valid_neighbors: dict[str, set[PatternType]] = field(default_factory=dict)


# Direction utilities
DIRECTIONS = ["N", "E", "S", "W"]
OPPOSITE_DIR = {"N": "S", "E": "W", "S": "N", "W": "E"}
DIR_OFFSETS = {"N": (0, -1), "E": (1, 0), "S": (0, 1), "W": (-1, 0)}


class WFCSolver[PatternType]:
    """Core Wave Function Collapse solver.

    This solver implements the WFC algorithm for constraint propagation:
    1. Initialize all cells with all possible patterns
    2. Find the undecided cell with the fewest remaining candidates
    3. Collapse that cell to a single pattern (weighted random choice)
    4. Propagate constraints to neighbors
    5. Repeat until all cells are collapsed or contradiction occurs

    Ties between equally constrained cells go to the first in scan order, so
    the only source of variation is the RNG.
    """

    def __init__(
        self,
        width: int,
        height: int,
        patterns: dict[PatternType, WFCPattern[PatternType]],
        rng: RNG,
    ) -> None:
        """Initialize the WFC solver.

        Args:
            width: Grid width in cells.
            height: Grid height in cells.
            patterns: Dict mapping pattern IDs to WFCPattern definitions.
            rng: Random number generator for deterministic results.
        """
        if not patterns:
            raise ValueError("WFCSolver needs at least one pattern")

        self.width = width
        self.height = height
        self.patterns = patterns
        self.rng = rng

        self.pattern_ids = list(patterns.keys())
        self.num_patterns = len(self.pattern_ids)
        self.pattern_to_index: dict[PatternType, int] = {
            pid: i for i, pid in enumerate(self.pattern_ids)
        }
        self.pattern_weights = [patterns[pid].weight for pid in self.pattern_ids]

        self.wave = np.ones((width, height, self.num_patterns), dtype=bool)
        self.collapsed = np.zeros((width, height), dtype=bool)

        self._precompute_compatibility()

    def _precompute_compatibility(self) -> None:
        """Build ``compatible[direction][i, j]``: may j sit in ``direction`` of i?"""
        self.compatible: dict[str, np.ndarray] = {}
        for direction in DIRECTIONS:
            matrix = np.zeros((self.num_patterns, self.num_patterns), dtype=bool)
            for i, pid in enumerate(self.pattern_ids):
                for neighbor_pid in self.patterns[pid].valid_neighbors.get(
                    direction, ()
                ):
                    j = self.pattern_to_index.get(neighbor_pid)
                    if j is not None:
                        matrix[i, j] = True
            self.compatible[direction] = matrix

    def _mask_for(self, allowed: set[PatternType]) -> np.ndarray:
        mask = np.zeros(self.num_patterns, dtype=bool)
        for pid in allowed:
            if pid in self.pattern_to_index:
                mask[self.pattern_to_index[pid]] = True
        return mask

    def _propagate(self, cells: list[tuple[int, int]]) -> None:
        """Propagate constraints outward from ``cells`` until nothing changes."""
        stack = list(cells)
        in_stack = set(cells)

        while stack:
            x, y = stack.pop()
            in_stack.discard((x, y))
            current = self.wave[x, y]

            for direction in DIRECTIONS:
                dx, dy = DIR_OFFSETS[direction]
                nx, ny = x + dx, y + dy
                if not (0 <= nx < self.width and 0 <= ny < self.height):
                    continue

                valid_for_neighbor = self.compatible[direction][current].any(axis=0)
                neighbor = self.wave[nx, ny]
                new_mask = neighbor & valid_for_neighbor
                if np.array_equal(new_mask, neighbor):
                    continue

                remaining = int(new_mask.sum())
                if remaining == 0:
                    raise WFCContradiction(
                        f"No valid patterns at ({nx}, {ny}) after propagation"
                    )
                self.wave[nx, ny] = new_mask
                if remaining == 1:
                    self.collapsed[nx, ny] = True
                if (nx, ny) not in in_stack:
                    stack.append((nx, ny))
                    in_stack.add((nx, ny))

    def constrain_cell(self, x: int, y: int, allowed: set[PatternType]) -> None:
        """Constrain a cell to only allow specific patterns.

        This is useful for applying boundary conditions or seeding specific
        patterns before solving. The constraint is immediately propagated
        to neighboring cells.

        Raises:
            WFCContradiction: If no allowed pattern is still possible there.
        """
        old_mask = self.wave[x, y].copy()
        new_mask = old_mask & self._mask_for(allowed)
        if not new_mask.any():
            raise WFCContradiction(f"No valid patterns at ({x}, {y}) after constraint")

        self.wave[x, y] = new_mask
        if new_mask.sum() == 1:
            self.collapsed[x, y] = True
        if not np.array_equal(new_mask, old_mask):
            self._propagate([(x, y)])

    def constrain_cells(self, cells: list[tuple[int, int, set[PatternType]]]) -> None:
        """Constrain multiple cells, then propagate once from all of them.

        Raises:
            WFCContradiction: If any cell is left without candidates.
        """
        changed: list[tuple[int, int]] = []
        for x, y, allowed in cells:
            old_mask = self.wave[x, y].copy()
            new_mask = old_mask & self._mask_for(allowed)
            if not new_mask.any():
                raise WFCContradiction(
                    f"No valid patterns at ({x}, {y}) after constraint"
                )
            if not np.array_equal(new_mask, old_mask):
                self.wave[x, y] = new_mask
                changed.append((x, y))
                if new_mask.sum() == 1:
                    self.collapsed[x, y] = True
        self._propagate(changed)

    def _select_cell(self) -> tuple[int, int] | None:
        """The undecided cell with the fewest candidates, or None when done."""
        counts = self.wave.sum(axis=2)
        if (counts == 0).any():
            raise WFCContradiction("A cell has no remaining patterns")
        undecided = counts > 1
        if not undecided.any():
            return None
        scores = np.where(undecided, counts, self.num_patterns + 1)
        flat_idx = int(np.argmin(scores.ravel(order="F")))
        return flat_idx % self.width, flat_idx // self.width

    def _collapse(self, x: int, y: int) -> None:
        candidates = [int(i) for i in np.flatnonzero(self.wave[x, y])]
        weights = [self.pattern_weights[i] for i in candidates]
        choice = self.rng.choices(candidates, weights=weights)[0]
        self.wave[x, y] = False
        self.wave[x, y, choice] = True
        self.collapsed[x, y] = True
        self._propagate([(x, y)])

    def solve(self) -> list[list[PatternType]]:
        """Run the WFC algorithm to completion.

        Returns:
            Pattern IDs indexed ``[x][y]``.

        Raises:
            WFCContradiction: If the constraints cannot be satisfied.
        """
        while (cell := self._select_cell()) is not None:
            self._collapse(*cell)

        return [
            [
                self.pattern_ids[int(np.flatnonzero(self.wave[x, y])[0])]
                for y in range(self.height)
            ]
            for x in range(self.width)
        ]

    @property
    def wave_as_sets(self) -> list[list[set[PatternType]]]:
        """The wave as sets of pattern IDs, for debugging and tests."""
        return [
            [
                {self.pattern_ids[int(i)] for i in np.flatnonzero(self.wave[x, y])}
                for y in range(self.height)
            ]
            for x in range(self.width)
        ]
