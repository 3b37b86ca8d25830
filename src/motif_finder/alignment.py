"""
alignment
=========

Post-search reporting: relocating the discovered motif in every input
sequence and ranking distinct motifs by how well they align to the input.
Nothing here feeds back into the search result.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, List, Sequence, Tuple

import pandas as pd
from joblib import Parallel, delayed

from motif_finder.functions import batch_alignment_scores, best_windows
from motif_finder.scoring import ProfileMatrix, build_profile
from motif_finder.sequences import ConfigurationError, SequenceSet, encode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiteMatch:
    """Best window of one sequence under a profile."""

    seq_index: int
    identifier: str
    position: int
    kmer: str
    probability: float

    @property
    def end(self) -> int:
        return self.position + len(self.kmer)


def locate_with_profile(sequences: SequenceSet, profile: ProfileMatrix) -> List[SiteMatch]:
    """Most probable window of every sequence under ``profile``."""
    sequences.validate_motif_length(profile.k)
    positions, probabilities = best_windows(sequences.encoded, profile.values)
    return [
        SiteMatch(
            seq_index=i,
            identifier=seq.identifier,
            position=int(pos),
            kmer=seq.text[int(pos) : int(pos) + profile.k],
            probability=float(prob),
        )
        for i, (seq, pos, prob) in enumerate(zip(sequences, positions, probabilities))
    ]


def locate_motifs(sequences: SequenceSet, motifs: Sequence[str], extra: float = 1.0) -> List[SiteMatch]:
    """Locate the profile of a final motif set in every sequence."""
    if len(motifs) == 0:
        raise ConfigurationError("Cannot locate an empty motif set")
    profile = build_profile(motifs, len(motifs[0]), extra)
    return locate_with_profile(sequences, profile)


def locate_pattern(sequences: SequenceSet, pattern: str, extra: float = 1.0) -> List[SiteMatch]:
    """Locate a consensus pattern, scored under the profile of the pattern alone."""
    return locate_motifs(sequences, [pattern], extra)


def sites_to_frame(sites: Iterable[SiteMatch]) -> pd.DataFrame:
    """Tabulate located sites, one row per sequence."""
    columns = ["seq_index", "identifier", "start", "end", "site", "probability"]
    rows = [
        {
            "seq_index": site.seq_index,
            "identifier": site.identifier,
            "start": site.position,
            "end": site.end,
            "site": site.kmer,
            "probability": site.probability,
        }
        for site in sites
    ]
    return pd.DataFrame(rows, columns=columns)


def unique_motifs(motifs: Iterable[str]) -> List[str]:
    """Distinct motifs in first-seen order."""
    return list(dict.fromkeys(motifs))


def alignment_score(sequences: SequenceSet, motif: str, match: int = 1, mismatch: int = 0, indel: int = -10) -> int:
    """Sum over sequences of the best local alignment score of ``motif``."""
    scores = batch_alignment_scores(sequences.encoded, encode(motif), match, mismatch, indel)
    return int(scores.sum())


def rank_motifs(
    sequences: SequenceSet,
    motifs: Iterable[str],
    top: int = 5,
    n_jobs: int = 1,
    match: int = 1,
    mismatch: int = 0,
    indel: int = -10,
) -> List[Tuple[int, str]]:
    """
    Rank distinct motifs by their summed local alignment score.

    Parameters
    ----------
    sequences : SequenceSet
        Sequences the motifs are aligned against.
    motifs : iterable of str
        Candidate motifs; duplicates are scored once.
    top : int
        Maximum number of entries returned.
    n_jobs : int
        joblib worker count.
    match, mismatch, indel : int
        Smith-Waterman scoring parameters.

    Returns
    -------
    list of (int, str)
        ``(score, motif)`` pairs, best first; equal scores keep first-seen
        order.
    """
    candidates = unique_motifs(motifs)
    logger.info(f"Aligning {len(candidates)} unique motif(s) to {len(sequences)} sequence(s)")
    scores = Parallel(n_jobs=n_jobs, backend="loky")(
        delayed(alignment_score)(sequences, motif, match, mismatch, indel) for motif in candidates
    )
    ranked = sorted(zip(scores, candidates), key=lambda pair: -pair[0])
    return ranked[:top]


def site_records(sites: Iterable[SiteMatch]) -> List[dict]:
    """Plain-dict form of located sites, for JSON output."""
    return [asdict(site) for site in sites]
