"""Index permutations that carry their own reverse lookup.

A permutation maps a presentation slot (what the player sees) to a canonical
slot (what is stored and graded). The forward table and its inverse are built
together and checked once, so callers never re-derive one from the other.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import random
from typing import TypeVar

from quizdeck.core.errors import QuizIntegrityError

T = TypeVar("T")


@dataclass(slots=True, frozen=True, init=False)
class Permutation:
    """Bijection over ``0..size-1`` with O(1) lookup in both directions."""

    to_canonical_table: tuple[int, ...]
    to_presentation_table: tuple[int, ...]

    def __init__(self, order: Iterable[int]) -> None:
        forward = tuple(order)
        size = len(forward)
        inverse = [-1] * size
        for presentation_index, canonical_index in enumerate(forward):
            if not 0 <= canonical_index < size:
                raise QuizIntegrityError(
                    f"Canonical index {canonical_index} is outside 0..{size - 1}."
                )
            if inverse[canonical_index] != -1:
                raise QuizIntegrityError(
                    f"Canonical index {canonical_index} appears more than once."
                )
            inverse[canonical_index] = presentation_index
        object.__setattr__(self, "to_canonical_table", forward)
        object.__setattr__(self, "to_presentation_table", tuple(inverse))

    @classmethod
    def identity(cls, size: int) -> "Permutation":
        return cls(range(size))

    @classmethod
    def shuffled(cls, size: int, rng: random.Random | None = None) -> "Permutation":
        """Return a uniformly random permutation (Fisher-Yates via ``shuffle``)."""
        order = list(range(size))
        (rng or random).shuffle(order)
        return cls(order)

    def __len__(self) -> int:
        return len(self.to_canonical_table)

    def to_canonical(self, presentation_index: int) -> int:
        if not 0 <= presentation_index < len(self):
            raise IndexError(
                f"Presentation index {presentation_index} out of range 0..{len(self) - 1}"
            )
        return self.to_canonical_table[presentation_index]

    def to_presentation(self, canonical_index: int) -> int:
        if not 0 <= canonical_index < len(self):
            raise IndexError(
                f"Canonical index {canonical_index} out of range 0..{len(self) - 1}"
            )
        return self.to_presentation_table[canonical_index]

    def apply(self, canonical_items: Sequence[T]) -> tuple[T, ...]:
        """Reorder canonical items into presentation order."""
        if len(canonical_items) != len(self):
            raise QuizIntegrityError(
                f"Cannot apply a permutation of size {len(self)} to {len(canonical_items)} items."
            )
        return tuple(canonical_items[index] for index in self.to_canonical_table)
