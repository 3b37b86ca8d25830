from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from motif_finder.alignment import SiteMatch, sites_to_frame
from motif_finder.scoring import ProfileMatrix
from motif_finder.search import SearchConfig, SearchResult
from motif_finder.sequences import Sequence as NucleotideSequence
from motif_finder.sequences import SequenceSet

SEPARATOR = "_" * 89

_ALGORITHM_TITLES = {
    "median": "Median String",
    "randomized": "Randomized",
    "gibbs": "Gibbs Sampler",
}


def read_fasta(path: str | Path, max_entries: Optional[int] = None) -> SequenceSet:
    """Read a FASTA file into a SequenceSet.

    The identifier of a record is the first whitespace-delimited token of
    its header. Sequence lines are joined and upper-cased; symbols outside
    ACGT raise InvalidSymbolError naming the record.
    """
    records: List[NucleotideSequence] = []
    identifier: Optional[str] = None
    chunks: List[str] = []

    def flush():
        """Close the current record."""
        if identifier is not None:
            records.append(NucleotideSequence(identifier, "".join(chunks)))

    with open(path, "r") as handle:
        for line in handle:
            line = line.strip()
            if not line:
                continue
            if line.startswith(">"):
                flush()
                if max_entries is not None and len(records) >= max_entries:
                    identifier = None
                    break
                header = line[1:].split()
                identifier = header[0] if header else f"seq_{len(records) + 1}"
                chunks = []
            elif identifier is not None:
                chunks.append(line)
        else:
            flush()

    logger = logging.getLogger(__name__)
    logger.info(f"Loaded {len(records)} sequence(s) from {path}")
    return SequenceSet(tuple(records))


def write_fasta(records: Iterable[Tuple[str, str]], path: str | Path) -> None:
    """Write ``(identifier, text)`` pairs as FASTA."""
    with open(path, "w") as out:
        for identifier, text in records:
            out.write(f">{identifier}\n")
            out.write(f"{text}\n")


def write_motifs(motifs: Sequence[str], path: str | Path) -> None:
    """Write a motif set as FASTA records named ``motif 1``, ``motif 2``..."""
    write_fasta(((f"motif {i}", motif.strip()) for i, motif in enumerate(motifs, start=1)), path)


def default_output_path(k: int, started: datetime) -> str:
    """Report file name used when no explicit path is given."""
    timestamp = int(started.timestamp() * 1_000_000)
    return f"MotifFinder-output-{timestamp}-{k}.txt"


def write_results(
    path: str | Path,
    result: SearchResult,
    config: SearchConfig,
    n_entries: int,
    started: datetime,
    ranking: Optional[Sequence[Tuple[int, str]]] = None,
    version: str = "",
) -> None:
    """Write a text report of a finished search.

    The report has a run header, the consensus string, the best ranked
    motif and its alignment score when ranking was done, a separator line,
    and then the motif set as FASTA-style ``>motif i`` records.
    """
    title = _ALGORITHM_TITLES.get(result.algorithm, result.algorithm)
    with open(path, "w") as out:
        out.write(f"MotifFinder {version}".rstrip() + "\n")
        out.write(f"Command: {title}\n")
        out.write(f"k: {config.k}\n")
        out.write(f"number of entries: {n_entries}\n")
        if result.algorithm in ("randomized", "gibbs"):
            out.write(f"runs: {config.restarts}\n")
        if result.algorithm == "gibbs":
            out.write(f"iterations: {config.iterations}\n")
        out.write(f"pseudocount: {config.extra:g}\n")
        out.write(f"Start time: {started.strftime('%Y-%m-%d %H:%M:%S')}\n")
        out.write(f"Consensus string: {result.consensus}\n")
        out.write(f"Score: {result.score}\n")
        if ranking:
            best_score, best_motif = ranking[0]
            out.write(f"Best motif: {best_motif}\n")
            out.write(f"Best motif score: {best_score}\n")
        out.write(f"{SEPARATOR}\n")
        for i, motif in enumerate(result.motifs, start=1):
            out.write(f">motif {i}\n")
            out.write(f"{motif.strip()}\n")


def write_meme(profile: ProfileMatrix, name: str, path: str | Path) -> None:
    """Write a profile as a single-motif MEME file."""
    with open(path, "w") as out:
        out.write("MEME version 4\n\n")
        out.write("ALPHABET= ACGT\n\n")
        out.write("strands: +\n\n")
        out.write("Background letter frequencies\n")
        out.write("A 0.25 C 0.25 G 0.25 T 0.25\n\n")
        out.write(f"MOTIF {name}\n")
        out.write(f"letter-probability matrix: alength= 4 w= {profile.k} nsites= {profile.n_motifs}\n")
        for row in profile.values.T:
            out.write(" " + " ".join(f"{val:.6f}" for val in row) + "\n")
        out.write("\n")


def read_meme_matrix(path: str | Path) -> np.ndarray:
    """Read the first letter-probability matrix of a MEME file as 4 x k."""
    rows: List[List[float]] = []
    width = None
    with open(path) as handle:
        for line in handle:
            if line.startswith("letter-probability matrix"):
                header = line.split()
                width = int(header[header.index("w=") + 1])
                continue
            if width is not None:
                parts = line.split()
                if not parts:
                    if rows:
                        break
                    continue
                rows.append([float(x) for x in parts])
                if len(rows) == width:
                    break
    if width is None:
        raise ValueError(f"No motifs found in {path}")
    return np.array(rows, dtype=np.float64).T


def write_sites(sites: Iterable[SiteMatch], path: str | Path) -> None:
    """Write located sites as a tab-separated table."""
    sites_to_frame(sites).to_csv(path, sep="\t", index=False)
