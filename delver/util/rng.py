"""Deterministic random number generation with isolated per-level streams.

Every level gets its own random stream derived from a master seed, so that:

1. A whole dungeon is reproducible from one master seed
2. Generating depth 3 twice yields the same map regardless of whether depth 2
   was generated in between
3. Extra random draws in one recipe never shift another level's sequence

Generation code never reaches for a global RNG. Callers obtain a stream and
pass it explicitly into ``BuilderChain.build_map``; layers receive it as an
argument and must not keep a reference to it after returning.

Usage:
    provider = RNGProvider(config.RANDOM_SEED)
    stream = provider.for_depth(3)
    chain = level_builder(3, stream, 80, 50)
    chain.build_map(stream)

Domain naming convention (hierarchical):
    - "map.level.3" - the stream for building depth 3
    - "map.preview" - ad-hoc streams for tooling
"""

from __future__ import annotations

import zlib
from collections.abc import Sequence
from random import Random
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from delver.types import Depth, RandomSeed

T = TypeVar("T")


class RNGStream:
    """Proxy that delegates to the current RNG for a domain.

    A cached stream survives ``RNGProvider.reset()``: every call looks up the
    underlying Random instance fresh from the provider.
    """

    def __init__(self, provider: RNGProvider, domain: str) -> None:
        self._provider = provider
        self._domain = domain

    @property
    def domain(self) -> str:
        return self._domain

    def _rng(self) -> Random:
        return self._provider._get_raw(self._domain)

    # -------------------------------------------------------------------------
    # Random method proxies
    # -------------------------------------------------------------------------

    def random(self) -> float:
        """Return random float in [0.0, 1.0)."""
        return self._rng().random()

    def randint(self, a: int, b: int) -> int:
        """Return random integer N such that a <= N <= b."""
        return self._rng().randint(a, b)

    def randrange(self, start: int, stop: int | None = None, step: int = 1) -> int:
        return self._rng().randrange(start, stop, step)

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng().choice(seq)

    def choices(
        self,
        population: Sequence[T],
        weights: Sequence[float] | None = None,
        *,
        cum_weights: Sequence[float] | None = None,
        k: int = 1,
    ) -> list[T]:
        """Return k-sized list of elements chosen with replacement."""
        return self._rng().choices(
            population, weights=weights, cum_weights=cum_weights, k=k
        )

    def shuffle(self, x: list) -> None:
        self._rng().shuffle(x)

    def sample(self, population: Sequence[T], k: int) -> list[T]:
        return self._rng().sample(population, k)

    def getrandbits(self, k: int) -> int:
        return self._rng().getrandbits(k)


# Type alias for functions that accept either Random or RNGStream.
# Use this in type hints: `def apply(self, data: BuildData, rng: RNG) -> None:`
type RNG = Random | RNGStream


class RNGProvider:
    """Provides isolated RNG streams keyed by domain name.

    Each domain gets its own Random instance derived deterministically
    from the master seed.
    """

    def __init__(self, master_seed: RandomSeed = None) -> None:
        self._master_seed = master_seed
        self._streams: dict[str, Random] = {}
        self._proxies: dict[str, RNGStream] = {}

    @property
    def master_seed(self) -> RandomSeed:
        return self._master_seed

    def get(self, domain: str) -> RNGStream:
        """Get an RNG stream for the named domain.

        Args:
            domain: Hierarchical name like "map.level.3" or "map.preview"

        Returns:
            An RNGStream proxy with the same interface as Random
        """
        if domain not in self._proxies:
            self._proxies[domain] = RNGStream(self, domain)
        return self._proxies[domain]

    def for_depth(self, depth: Depth) -> RNGStream:
        """Get the stream used to build the level at ``depth``."""
        return self.get(f"map.level.{depth}")

    def _get_raw(self, domain: str) -> Random:
        if domain not in self._streams:
            if self._master_seed is None:
                # No seed: use system entropy for non-deterministic behavior
                self._streams[domain] = Random()
            else:
                # crc32 rather than hash(): hash() is salted per interpreter
                # session via PYTHONHASHSEED.
                derived_seed = zlib.crc32(f"{self._master_seed}:{domain}".encode())
                self._streams[domain] = Random(derived_seed)
        return self._streams[domain]

    def reset(self, master_seed: RandomSeed = None) -> None:
        """Reset all streams with a new master seed.

        Existing RNGStream proxies remain valid and will use the new streams.
        """
        self._master_seed = master_seed
        self._streams.clear()
