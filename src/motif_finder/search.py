"""
search
======

Motif search strategies and the restart harness they share.

Three strategies are registered under a fixed key each:

``median``
    Exhaustive Median String search over all 4^k patterns. Exact and
    deterministic, exponential in k.
``randomized``
    Randomized Motif Search: greedy profile-driven refinement from a random
    start, repeated over independent restarts.
``gibbs``
    Gibbs Sampling: leave-one-out profile-weighted resampling of one motif
    per iteration, repeated over independent restarts.

Every strategy implements ``run(sequences, config) -> SearchResult``.
Restart ``i`` draws from ``default_rng(SeedSequence(seed).spawn(r)[i])``,
a stream that depends only on the seed and the restart index, so results
do not depend on scheduling and adding restarts never worsens the best
score for a fixed seed. Restarts run through joblib and are reduced by
``(score, restart index)``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from dataclasses import field as dc_field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from joblib import Parallel, delayed, effective_n_jobs
from tqdm import tqdm

from motif_finder.functions import (
    best_windows,
    closest_windows,
    count_windows,
    median_chunk,
    motif_set_score,
    window_probabilities,
)
from motif_finder.ragged import RaggedData
from motif_finder.scoring import profile_from_counts
from motif_finder.sequences import ALPHABET, ConfigurationError, SequenceSet, decode, encode

logger = logging.getLogger(__name__)

# Median String beyond this k takes hours on promoter-sized inputs.
SLOW_MEDIAN_K = 10


@dataclass(frozen=True)
class SearchConfig:
    """Immutable parameter set for one search invocation.

    Attributes
    ----------
    algorithm : str
        Registered strategy key: ``median``, ``randomized`` or ``gibbs``.
    k : int
        Motif length.
    extra : float
        Pseudocount added to every profile count.
    iterations : int
        Iterations per Gibbs restart (``t``).
    restarts : int
        Independent restarts for randomized and Gibbs search (``r``).
    seed : int, optional
        Master seed; ``None`` draws fresh entropy.
    n_jobs : int
        joblib worker count, -1 for all cores.
    show_progress : bool
        Show a tqdm progress bar over restarts or candidate chunks.
    """

    algorithm: str = "randomized"
    k: int = 8
    extra: float = 1.0
    iterations: int = 1000
    restarts: int = 20
    seed: Optional[int] = None
    n_jobs: int = 1
    show_progress: bool = False

    def validate(self) -> None:
        """Raise ConfigurationError for parameters no strategy can run with."""
        strategy_cls = registry.get(self.algorithm)
        if self.k <= 0:
            raise ConfigurationError(f"Motif length k must be positive, got {self.k}")
        if self.extra < 0:
            raise ConfigurationError(f"Pseudocount must be non-negative, got {self.extra}")
        if strategy_cls.uses_restarts and self.restarts <= 0:
            raise ConfigurationError(f"Number of restarts must be positive, got {self.restarts}")
        if strategy_cls.uses_iterations and self.iterations <= 0:
            raise ConfigurationError(f"Number of iterations must be positive, got {self.iterations}")


def create_search_config(**kwargs) -> SearchConfig:
    """Build a SearchConfig, ignoring ``None`` values so defaults apply."""
    return SearchConfig(**{key: value for key, value in kwargs.items() if value is not None})


@dataclass(frozen=True)
class RestartResult:
    """Outcome of one restart of a randomized or Gibbs search."""

    restart: int
    positions: np.ndarray = dc_field(hash=False, compare=False)
    score: int
    trajectory: Tuple[int, ...] = ()


@dataclass(frozen=True)
class SearchResult:
    """Best motif set found by a search.

    Attributes
    ----------
    algorithm : str
        Strategy key that produced the result.
    motifs : tuple of str
        One k-mer per input sequence, in input order.
    positions : tuple of int
        Start of each motif in its sequence.
    score : int
        Total Hamming distance of ``motifs`` to ``consensus``.
    consensus : str
        Consensus pattern of the motifs (the median pattern for ``median``).
    restart : int, optional
        Index of the winning restart.
    trajectory : tuple of int
        Scores visited by the winning restart.
    restart_scores : tuple of int
        Final score of every restart, in restart order.
    """

    algorithm: str
    motifs: Tuple[str, ...]
    positions: Tuple[int, ...]
    score: int
    consensus: str
    restart: Optional[int] = None
    trajectory: Tuple[int, ...] = ()
    restart_scores: Tuple[int, ...] = ()

    @property
    def k(self) -> int:
        return len(self.consensus)

    def to_dict(self) -> dict:
        result = asdict(self)
        result["motifs"] = list(self.motifs)
        result["positions"] = list(self.positions)
        result["trajectory"] = list(self.trajectory)
        result["restart_scores"] = list(self.restart_scores)
        return result


class SearchRegistry:
    """Registry for search strategies using decorator pattern."""

    def __init__(self):
        """Initialize registry state."""
        self._strategies: Dict[str, type] = {}

    def register(self, key: str):
        """Decorator to register a search strategy class."""

        def decorator(strategy_cls):
            """Store a strategy class in the registry."""
            self._strategies[key] = strategy_cls
            logger.debug(f"Registered search strategy: {key} -> {strategy_cls.__name__}")
            return strategy_cls

        return decorator

    def get(self, key: str) -> type:
        """Get strategy class by key."""
        if key not in self._strategies:
            available = list(self._strategies.keys())
            raise ConfigurationError(f"Search strategy '{key}' not found. Available: {available}")
        return self._strategies[key]

    @property
    def keys(self) -> List[str]:
        return list(self._strategies.keys())


registry = SearchRegistry()


def run_search(sequences: SequenceSet, config: SearchConfig) -> SearchResult:
    """Validate inputs and dispatch to the configured strategy."""
    config.validate()
    sequences.validate_motif_length(config.k)
    strategy_cls = registry.get(config.algorithm)
    logger.info(f"Running {config.algorithm} search: k={config.k}, {len(sequences)} sequence(s)")
    result = strategy_cls.run(sequences, config)
    logger.info(f"Best score: {result.score}, consensus: {result.consensus}")
    return result


class KmerSpace:
    """Lazy, indexable view of all k-mers in lexicographic order.

    Pattern ``i`` is the base-4 expansion of ``i`` over A, C, G, T, so only
    the current pattern is ever held in memory.
    """

    def __init__(self, k: int):
        if k <= 0:
            raise ConfigurationError(f"Motif length k must be positive, got {k}")
        self.k = k

    def __len__(self) -> int:
        return 4**self.k

    def __getitem__(self, index: int) -> str:
        size = len(self)
        if index < 0:
            index += size
        if not 0 <= index < size:
            raise IndexError(f"k-mer index {index} out of range for k={self.k}")
        digits = []
        for _ in range(self.k):
            index, digit = divmod(index, 4)
            digits.append(ALPHABET[digit])
        return "".join(reversed(digits))

    def chunks(self, n_chunks: int) -> List[Tuple[int, int]]:
        """Split the index range into at most ``n_chunks`` contiguous ranges."""
        size = len(self)
        n_chunks = max(1, min(n_chunks, size))
        bounds = np.linspace(0, size, n_chunks + 1, dtype=np.int64)
        return [(int(bounds[i]), int(bounds[i + 1])) for i in range(n_chunks) if bounds[i] < bounds[i + 1]]


def _motifs_at(sequences: SequenceSet, positions: Sequence[int], k: int) -> Tuple[str, ...]:
    return tuple(seq.text[int(pos) : int(pos) + k] for seq, pos in zip(sequences, positions))


def _collect(jobs, n_jobs: int, total: int, show_progress: bool, desc: str) -> list:
    """Run delayed jobs with joblib, reporting completion through tqdm."""
    results = Parallel(n_jobs=n_jobs, backend="loky", return_as="generator")(jobs)
    return list(tqdm(results, total=total, desc=desc, disable=not show_progress))


def _random_positions(offsets: np.ndarray, k: int, rng: np.random.Generator) -> np.ndarray:
    """Uniform random window start for every sequence."""
    n_windows = np.diff(offsets) - k + 1
    return rng.integers(0, n_windows).astype(np.int64)


def randomized_restart(
    data: np.ndarray, offsets: np.ndarray, k: int, extra: float, seed: np.random.SeedSequence, restart: int
) -> RestartResult:
    """One greedy refinement run from a random start.

    Each step replaces every motif by the most probable window under the
    profile of the current motifs and stops as soon as the distance score
    no longer strictly improves.
    """
    rng = np.random.default_rng(seed)
    n_seq = len(offsets) - 1
    positions = _random_positions(offsets, k, rng)
    score, _ = motif_set_score(data, offsets, positions, k)
    trajectory = [int(score)]

    while True:
        counts = count_windows(data, offsets, positions, k, -1)
        profile = profile_from_counts(counts, n_seq, extra)
        candidate, _ = best_windows(RaggedData(data, offsets), profile.values)
        candidate_score, _ = motif_set_score(data, offsets, candidate, k)
        if candidate_score >= score:
            break
        positions, score = candidate, candidate_score
        trajectory.append(int(score))

    logger.debug(f"Randomized restart {restart}: score {score} after {len(trajectory) - 1} improvement(s)")
    return RestartResult(restart=restart, positions=positions, score=int(score), trajectory=tuple(trajectory))


def gibbs_restart(
    data: np.ndarray,
    offsets: np.ndarray,
    k: int,
    extra: float,
    iterations: int,
    seed: np.random.SeedSequence,
    restart: int,
) -> RestartResult:
    """One Gibbs sampling walk of ``iterations`` steps from a random start.

    The walk may leave good states, so the best motif set seen at any step
    (the initial one included) is what the restart reports.
    """
    rng = np.random.default_rng(seed)
    n_seq = len(offsets) - 1
    positions = _random_positions(offsets, k, rng)
    score, _ = motif_set_score(data, offsets, positions, k)
    best_positions = positions.copy()
    best_score = int(score)
    trajectory = [int(score)]

    for _ in range(iterations):
        i = int(rng.integers(n_seq))
        counts = count_windows(data, offsets, positions, k, i)
        profile = profile_from_counts(counts, n_seq - 1, extra)
        weights = window_probabilities(data[offsets[i] : offsets[i + 1]], profile.values)
        total = weights.sum()
        if total > 0:
            positions[i] = rng.choice(weights.size, p=weights / total)
        else:
            positions[i] = rng.integers(weights.size)

        score, _ = motif_set_score(data, offsets, positions, k)
        trajectory.append(int(score))
        if score < best_score:
            best_score = int(score)
            best_positions = positions.copy()

    logger.debug(f"Gibbs restart {restart}: best score {best_score} over {iterations} iteration(s)")
    return RestartResult(restart=restart, positions=best_positions, score=best_score, trajectory=tuple(trajectory))


def run_restarts(
    sequences: SequenceSet,
    config: SearchConfig,
    restart_fn: Callable[..., RestartResult],
    *args,
) -> SearchResult:
    """Run ``config.restarts`` independent restarts and keep the best one.

    ``restart_fn`` is called as ``restart_fn(data, offsets, k, *args, seed,
    restart)``.
    """
    encoded = sequences.encoded
    seeds = np.random.SeedSequence(config.seed).spawn(config.restarts)
    jobs = (
        delayed(restart_fn)(encoded.data, encoded.offsets, config.k, *args, seeds[i], i)
        for i in range(config.restarts)
    )
    results: List[RestartResult] = _collect(
        jobs, config.n_jobs, config.restarts, config.show_progress, desc=f"{config.algorithm} restarts"
    )

    best = min(results, key=lambda res: (res.score, res.restart))
    _, consensus = motif_set_score(encoded.data, encoded.offsets, best.positions, config.k)
    restart_scores = tuple(res.score for res in sorted(results, key=lambda res: res.restart))
    logger.info(f"Best restart {best.restart} of {config.restarts}: score {best.score}")

    return SearchResult(
        algorithm=config.algorithm,
        motifs=_motifs_at(sequences, best.positions, config.k),
        positions=tuple(int(pos) for pos in best.positions),
        score=best.score,
        consensus=decode(consensus),
        restart=best.restart,
        trajectory=best.trajectory,
        restart_scores=restart_scores,
    )


def median_string(sequences: SequenceSet, k: int, n_jobs: int = 1, show_progress: bool = False) -> Tuple[str, int]:
    """Pattern with the smallest total distance to the sequences.

    Among equally good patterns the lexicographically first is returned.
    """
    if k > SLOW_MEDIAN_K:
        logger.warning(f"Median String enumerates 4^{k} = {4**k} patterns; k > {SLOW_MEDIAN_K} is impractical")
    space = KmerSpace(k)
    encoded = sequences.encoded
    n_chunks = max(16, 4 * effective_n_jobs(n_jobs))
    bounds = space.chunks(n_chunks)
    logger.debug(f"Median String: {len(space)} candidate(s) in {len(bounds)} chunk(s)")

    jobs = (delayed(median_chunk)(encoded.data, encoded.offsets, k, start, stop) for start, stop in bounds)
    chunk_results = _collect(jobs, n_jobs, len(bounds), show_progress, desc="median candidates")

    distance, index = min((int(dist), int(idx)) for dist, idx in chunk_results if idx >= 0)
    return space[index], distance


@registry.register("median")
class MedianStringStrategy:
    """Exhaustive Median String strategy."""

    uses_restarts = False
    uses_iterations = False

    @staticmethod
    def run(sequences: SequenceSet, config: SearchConfig) -> SearchResult:
        """Find the median pattern and the closest window to it in every sequence."""
        pattern, distance = median_string(sequences, config.k, config.n_jobs, config.show_progress)
        encoded = sequences.encoded
        positions, _ = closest_windows(encoded.data, encoded.offsets, encode(pattern))
        return SearchResult(
            algorithm="median",
            motifs=_motifs_at(sequences, positions, config.k),
            positions=tuple(int(pos) for pos in positions),
            score=distance,
            consensus=pattern,
        )


@registry.register("randomized")
class RandomizedMotifSearchStrategy:
    """Randomized Motif Search with independent restarts."""

    uses_restarts = True
    uses_iterations = False

    @staticmethod
    def run(sequences: SequenceSet, config: SearchConfig) -> SearchResult:
        return run_restarts(sequences, config, randomized_restart, float(config.extra))


@registry.register("gibbs")
class GibbsSamplerStrategy:
    """Gibbs Sampler with independent restarts."""

    uses_restarts = True
    uses_iterations = True

    @staticmethod
    def run(sequences: SequenceSet, config: SearchConfig) -> SearchResult:
        if len(sequences) == 1 and config.extra == 0:
            raise ConfigurationError("Gibbs sampling a single sequence needs a positive pseudocount")
        return run_restarts(sequences, config, gibbs_restart, float(config.extra), int(config.iterations))
