"""
scoring
=======

Profile and scoring engine shared by every search strategy.

A profile is a 4 x k matrix of per-position symbol probabilities built from
a motif set. Two scores are derived from motif sets and profiles:

* the *distance score*, total Hamming distance of the motifs to a
  consensus pattern (lower is better), compared across restarts;
* the *probability* of a k-mer under a profile (higher is better), used to
  choose windows inside a sequence.

The pseudocount ``extra`` is added to every raw count before each column
is normalized, so a column total is ``n_motifs + 4 * extra``.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dc_field
from typing import Iterable, Sequence, Tuple

import numpy as np
import pandas as pd

from motif_finder.functions import consensus_codes, information_content, window_probabilities
from motif_finder.sequences import ALPHABET, ConfigurationError, check_symbols, decode, encode


@dataclass(frozen=True)
class ProfileMatrix:
    """Immutable 4 x k probability matrix.

    Attributes
    ----------
    values : np.ndarray
        Probabilities with rows in A, C, G, T order and one column per
        motif position. Every column sums to 1.
    k : int
        Motif length.
    extra : float
        Pseudocount added to each raw count before normalization.
    n_motifs : int
        Number of motifs the profile was counted from.
    """

    values: np.ndarray = dc_field(hash=False, compare=False)
    k: int
    extra: float
    n_motifs: int

    def __hash__(self):
        """Hash on shape and origin, the array itself is unhashable."""
        return hash((self.k, self.extra, self.n_motifs, self.values.tobytes()))

    def consensus(self) -> str:
        return consensus(self)

    def information_content(self) -> np.ndarray:
        """Information content of each column in bits."""
        return information_content(self.values)

    def to_frame(self):
        """Return the profile as a pandas DataFrame indexed by symbol."""
        return pd.DataFrame(self.values, index=list(ALPHABET), columns=range(1, self.k + 1))


def profile_from_counts(counts: np.ndarray, n_motifs: int, extra: float) -> ProfileMatrix:
    """Normalize a 4 x k count matrix after adding ``extra`` to each cell."""
    if extra < 0:
        raise ConfigurationError(f"Pseudocount must be non-negative, got {extra}")
    totals = counts.sum(axis=0) + 4 * extra
    if np.any(totals <= 0):
        raise ConfigurationError("Cannot build a profile from zero motifs without a positive pseudocount")
    values = (counts + extra) / totals
    return ProfileMatrix(values=values, k=counts.shape[1], extra=float(extra), n_motifs=int(n_motifs))


def count_matrix(motifs: Sequence[str], k: int) -> np.ndarray:
    """Raw 4 x k symbol counts of a motif set."""
    counts = np.zeros((4, k), dtype=np.float64)
    columns = np.arange(k)
    for motif in motifs:
        if len(motif) != k:
            raise ConfigurationError(f"Motif {motif!r} has length {len(motif)}, expected {k}")
        check_symbols(motif, label=f"Motif {motif!r}")
        np.add.at(counts, (encode(motif), columns), 1.0)
    return counts


def build_profile(motifs: Sequence[str], k: int, extra: float = 1.0) -> ProfileMatrix:
    """Build the profile matrix of a motif set."""
    counts = count_matrix(motifs, k)
    return profile_from_counts(counts, len(motifs), extra)


def consensus(profile: ProfileMatrix) -> str:
    """Most probable symbol per column, A < C < G < T on ties."""
    return decode(consensus_codes(np.ascontiguousarray(profile.values, dtype=np.float64)))


def hamming_distance(first: str, second: str) -> int:
    """Number of mismatching positions between two equal-length strings."""
    if len(first) != len(second):
        raise ConfigurationError(f"Cannot compare strings of lengths {len(first)} and {len(second)}")
    return sum(1 for a, b in zip(first, second) if a != b)


def distance_score(motifs: Iterable[str], pattern: str) -> int:
    """Total Hamming distance between every motif and ``pattern``."""
    return sum(hamming_distance(motif, pattern) for motif in motifs)


def score_motifs(motifs: Sequence[str]) -> Tuple[int, str]:
    """Distance score of a motif set against its own consensus.

    Returns
    -------
    tuple
        ``(score, consensus)``.
    """
    if len(motifs) == 0:
        raise ConfigurationError("Cannot score an empty motif set")
    k = len(motifs[0])
    pattern = consensus(profile_from_counts(count_matrix(motifs, k), len(motifs), 0.0))
    return distance_score(motifs, pattern), pattern


def probability(kmer: str, profile: ProfileMatrix) -> float:
    """Probability of ``kmer`` under ``profile``."""
    if len(kmer) != profile.k:
        raise ConfigurationError(f"k-mer {kmer!r} has length {len(kmer)}, profile has {profile.k} columns")
    check_symbols(kmer.upper(), label=f"k-mer {kmer!r}")
    codes = encode(kmer)
    return float(np.prod(profile.values[codes, np.arange(profile.k)]))


def kmer_probabilities(sequence: str, profile: ProfileMatrix) -> np.ndarray:
    """Probability of every window of ``sequence`` under ``profile``."""
    check_symbols(sequence.upper(), label="sequence")
    return window_probabilities(encode(sequence), np.ascontiguousarray(profile.values, dtype=np.float64))


def best_kmer(sequence: str, k: int, profile: ProfileMatrix) -> Tuple[str, int]:
    """Most probable k-mer of ``sequence`` and its start position.

    The lowest start position wins ties.
    """
    if k != profile.k:
        raise ConfigurationError(f"Motif length {k} does not match profile width {profile.k}")
    if len(sequence) < k:
        raise ConfigurationError(f"Sequence of length {len(sequence)} is shorter than k={k}")
    probabilities = kmer_probabilities(sequence, profile)
    position = int(np.argmax(probabilities))
    return sequence[position : position + k].upper(), position
