import random
import uuid
from typing import Callable, Iterator, Optional


CandidateFactory = Callable[[int], Iterator[str]]


def random_candidates() -> Iterator[str]:
    """Endless stream of v4 UUIDs drawn from OS entropy. Repeats are not filtered."""
    while True:
        yield str(uuid.uuid4())


def seeded_candidates(seed: int, worker_id: int) -> Iterator[str]:
    """Endless, reproducible stream of v4 UUIDs for one worker."""
    rng = random.Random(f"{seed}:{worker_id}")
    while True:
        yield str(uuid.UUID(int=rng.getrandbits(128), version=4))


class RandomCandidates:
    """Picklable factory handing each worker its own OS-entropy stream."""

    def __call__(self, worker_id: int) -> Iterator[str]:
        return random_candidates()

    def __repr__(self) -> str:
        return "RandomCandidates()"


class SeededCandidates:
    """Picklable factory handing each worker a deterministic stream derived from one seed."""

    def __init__(self, seed: int):
        self.seed = seed

    def __call__(self, worker_id: int) -> Iterator[str]:
        return seeded_candidates(self.seed, worker_id)

    def __repr__(self) -> str:
        return f"SeededCandidates(seed={self.seed})"


def candidate_factory(seed: Optional[int] = None) -> CandidateFactory:
    if seed is None:
        return RandomCandidates()
    return SeededCandidates(seed)
