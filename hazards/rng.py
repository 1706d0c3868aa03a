from typing import Optional, Sequence, TypeVar
import numpy as np

T = TypeVar("T")

class DRNG:
    """Seedable Random Number Generator wrapper."""

    def __init__(self, seed: Optional[int] = None):
        self.g = np.random.Generator(np.random.PCG64(seed))

    def uniform(self, a: float, b: float) -> float:
        """Return a random float in [a, b)."""
        return float(self.g.uniform(a, b))

    def integer(self, low: int, high: int) -> int:
        """Return a random int in [low, high] (both inclusive)."""
        return int(self.g.integers(low, high, endpoint=True))

    def choice(self, items: Sequence[T]) -> T:
        """Pick one element uniformly."""
        return items[int(self.g.integers(0, len(items)))]
