"""
Weighted and uniform random choice, re-evaluated on every draw.

A draw function takes a `random.Random` and returns a value. Alternatives in a
`WeightedChoice` may themselves be draw functions, which lets choices nest:

    WeightedChoice([(60, draw_from_config), (40, draw_from_state)]).draw(rng)
"""
import random
from typing import Any, Callable, Generic, Iterable, List, Sequence, Tuple, TypeVar, Union

T = TypeVar('T')

Draw = Callable[[random.Random], T]


class WeightedChoice(Generic[T]):
    """
    Declarative table of `(weight, alternative)` rows. Each draw picks one row
    with probability weight / total, independently of previous draws. A callable
    alternative is invoked with the same random source; any other alternative is
    returned as is.
    """
    __slots__ = ('_rows', '_total')

    def __init__(self, rows: Iterable[Tuple[int, Union[T, Draw[T]]]]):
        self._rows: List[Tuple[int, Union[T, Draw[T]]]] = list(rows)
        for weight, _ in self._rows:
            if isinstance(weight, bool) or not isinstance(weight, int) or weight < 0:
                raise ValueError(f"Weights must be non-negative integers, got {weight!r}")
        self._total: int = sum(weight for weight, _ in self._rows)
        if self._total == 0:
            raise ValueError("A weighted choice needs at least one positive weight.")

    @property
    def rows(self) -> List[Tuple[int, Union[T, Draw[T]]]]:
        return list(self._rows)

    @property
    def total_weight(self) -> int:
        return self._total

    def probability(self, index: int) -> float:
        """Probability of row `index` being drawn."""
        return self._rows[index][0] / self._total

    def pick_index(self, rng: random.Random) -> int:
        point = rng.randrange(self._total)
        for index, (weight, _) in enumerate(self._rows):
            if point < weight:
                return index
            point -= weight
        raise AssertionError("unreachable: point exceeds total weight")

    def draw(self, rng: random.Random) -> T:
        _, alternative = self._rows[self.pick_index(rng)]
        if callable(alternative):
            return alternative(rng)
        return alternative

    def __call__(self, rng: random.Random) -> T:
        return self.draw(rng)

    def __repr__(self) -> str:
        return f"WeightedChoice(weights={[weight for weight, _ in self._rows]})"


def select_uniform(rng: random.Random, collection: Sequence[T]) -> T:
    """
    Uniform pick from a collection materialized by the caller at draw time.
    Raises IndexError when the collection is empty.
    """
    if not collection:
        raise IndexError("Cannot select from an empty collection.")
    return collection[rng.randrange(len(collection))]


def uniform_from(source: Callable[[], Sequence[T]]) -> Draw[T]:
    """
    Draw function over a collection whose size may change between draws: the
    source is called again on every draw, never cached.
    """
    def draw(rng: random.Random) -> T:
        return select_uniform(rng, source())
    return draw
