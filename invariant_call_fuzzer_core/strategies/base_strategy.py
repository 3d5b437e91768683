import random
from typing import List

from hypothesis import strategies as st

from ..call import Call


class CallStrategy:
    """
    Abstract base class for call generators.

    A generator produces one `Call` per request from the shared state visible at
    that moment. It never writes to that state and never memoizes between calls.
    """
    def generate(self, rng: random.Random) -> Call:
        """
        Draws a single call.

        :param rng: Source of randomness for every choice made in this draw.
        :return: A new Call.
        :raises GenerationError: When no eligible contract, function or sender exists.
        """
        raise NotImplementedError("Subclasses must implement the generate method.")

    def as_strategy(self) -> st.SearchStrategy[Call]:
        """
        Hypothesis strategy producing one call per example. The random source is
        controlled by hypothesis, so failing sequences replay and shrink.
        """
        return st.randoms(use_true_random=False).map(self.generate)

    def sequence_seed(self) -> st.SearchStrategy[List[Call]]:
        """
        Only the first call of a sequence is seeded through hypothesis; the rest
        are generated lazily as execution mutates the shared state.
        """
        return self.as_strategy().map(lambda call: [call])
