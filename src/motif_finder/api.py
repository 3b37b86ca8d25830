"""High-level public API for motif discovery."""

from typing import Optional

from motif_finder.pipeline import MotifReport, SequenceSource, run_pipeline
from motif_finder.search import SearchConfig, create_search_config
from motif_finder.sequences import ConfigurationError

_ALGORITHM_ALIASES = {
    "median": "median",
    "median-string": "median",
    "median_string": "median",
    "randomized": "randomized",
    "randomised": "randomized",
    "rms": "randomized",
    "randomized-motif-search": "randomized",
    "gibbs": "gibbs",
    "gibbs-sampler": "gibbs",
    "gibbs_sampler": "gibbs",
}


def normalize_algorithm(algorithm: str) -> str:
    """Normalize algorithm aliases to registry keys."""

    resolved = _ALGORITHM_ALIASES.get(algorithm.lower())
    if resolved is None:
        available = ", ".join(sorted(_ALGORITHM_ALIASES.keys()))
        raise ConfigurationError(f"Unknown algorithm: {algorithm!r}. Available: {available}")
    return resolved


def create_config(
    algorithm: str = "randomized",
    k: int = 8,
    extra: float = 1.0,
    iterations: int = 1000,
    restarts: int = 20,
    seed: Optional[int] = None,
    n_jobs: int = 1,
    show_progress: bool = False,
) -> SearchConfig:
    """Build and validate a search config."""

    config = create_search_config(
        algorithm=normalize_algorithm(algorithm),
        k=k,
        extra=extra,
        iterations=iterations,
        restarts=restarts,
        seed=seed,
        n_jobs=n_jobs,
        show_progress=show_progress,
    )
    config.validate()
    return config


def find_motifs(
    sequences: SequenceSource,
    algorithm: str = "randomized",
    k: int = 8,
    extra: float = 1.0,
    iterations: int = 1000,
    restarts: int = 20,
    seed: Optional[int] = None,
    n_jobs: int = 1,
    align: bool = False,
    max_entries: Optional[int] = None,
    show_progress: bool = False,
    config: Optional[SearchConfig] = None,
) -> MotifReport:
    """Single-call entry point for motif discovery.

    ``sequences`` may be a SequenceSet, a FASTA path, or an iterable of
    strings or ``(identifier, text)`` pairs. Passing ``config`` overrides
    the individual search parameters.
    """

    if config is None:
        config = create_config(
            algorithm=algorithm,
            k=k,
            extra=extra,
            iterations=iterations,
            restarts=restarts,
            seed=seed,
            n_jobs=n_jobs,
            show_progress=show_progress,
        )
    return run_pipeline(sequences, config, max_entries=max_entries, align=align)
