"""
motif_finder
==================

De-novo discovery of short nucleotide motifs shared by a collection of DNA
sequences, such as transcription-factor binding sites upstream of
transcript start sites.

The top level modules expose the following key components:

``sequences``
    The A/C/G/T alphabet, immutable :class:`Sequence` and
    :class:`SequenceSet` containers, and the :class:`ConfigurationError`
    raised for inputs that cannot be searched.

``scoring``
    Profile construction with pseudocounts, consensus, distance score,
    k-mer probability and the most probable window of a sequence.

``search``
    The registered search strategies (exhaustive Median String, Randomized
    Motif Search, Gibbs Sampler) and the restart harness that runs
    independent restarts in parallel and keeps the best one.

``alignment``
    Relocating a discovered motif in every sequence and ranking distinct
    motifs by local alignment.

``io``
    FASTA input and the text, MEME and TSV outputs.

``pipeline`` / ``api``
    End-to-end orchestration and a single-call entry point.

``cli``
    The ``motif-finder`` command line interface.

Only Median String is exact; the randomized and Gibbs strategies return the
best local optimum found across their restarts.
"""

__version__ = "0.9.2"

from motif_finder.api import create_config, find_motifs
from motif_finder.scoring import (
    ProfileMatrix,
    best_kmer,
    build_profile,
    consensus,
    distance_score,
    probability,
    score_motifs,
)
from motif_finder.search import SearchConfig, SearchResult, registry, run_search
from motif_finder.sequences import ConfigurationError, InvalidSymbolError, Sequence, SequenceSet

__all__ = [
    "__version__",
    "ConfigurationError",
    "InvalidSymbolError",
    "ProfileMatrix",
    "SearchConfig",
    "SearchResult",
    "Sequence",
    "SequenceSet",
    "best_kmer",
    "build_profile",
    "consensus",
    "create_config",
    "distance_score",
    "find_motifs",
    "probability",
    "registry",
    "run_search",
    "score_motifs",
]
