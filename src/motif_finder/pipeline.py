"""
End-to-end motif discovery pipeline.
This module loads sequences, runs the configured search, derives the summary
(consensus, distinct motifs, final profile), optionally aligns and locates
the motifs, and writes the requested output files.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from motif_finder.alignment import SiteMatch, locate_with_profile, rank_motifs, site_records, unique_motifs
from motif_finder.io import default_output_path, read_fasta, write_meme, write_results, write_sites
from motif_finder.scoring import ProfileMatrix, build_profile
from motif_finder.search import SearchConfig, SearchResult, run_search
from motif_finder.sequences import ConfigurationError, SequenceRecord, SequenceSet

SequenceSource = Union[SequenceSet, str, Path, Iterable[SequenceRecord]]

# Passing this as ``output_path`` writes the report under a generated name.
AUTO_OUTPUT = ""


@dataclass
class MotifReport:
    """Everything a finished run produced, ready to format or persist."""

    result: SearchResult
    config: SearchConfig
    n_sequences: int
    profile: ProfileMatrix
    unique_motifs: List[str]
    started: datetime
    elapsed: float = 0.0
    ranking: List[Tuple[int, str]] = field(default_factory=list)
    sites: List[SiteMatch] = field(default_factory=list)
    output_path: Optional[str] = None

    @property
    def consensus(self) -> str:
        return self.result.consensus

    @property
    def score(self) -> int:
        return self.result.score

    @property
    def motifs(self) -> Tuple[str, ...]:
        return self.result.motifs

    def summary(self) -> dict:
        """JSON-serializable summary of the run."""
        summary = {
            "algorithm": self.result.algorithm,
            "k": self.config.k,
            "sequences": self.n_sequences,
            "consensus": self.result.consensus,
            "score": self.result.score,
            "motifs": list(self.result.motifs),
            "positions": list(self.result.positions),
            "unique_motifs": self.unique_motifs,
            "information_content": [round(float(x), 4) for x in self.profile.information_content()],
            "elapsed": round(self.elapsed, 3),
        }
        if self.result.restart is not None:
            summary["best_restart"] = self.result.restart
        if self.ranking:
            summary["top_motifs"] = [{"motif": motif, "score": score} for score, motif in self.ranking]
        if self.sites:
            summary["sites"] = site_records(self.sites)
        if self.output_path:
            summary["output"] = self.output_path
        return summary


class Pipeline:
    """
    Motif discovery pipeline.

    Loading, searching, summarizing, aligning and writing are separate
    methods so library users can call only the parts they need.
    """

    def __init__(self, version: str = ""):
        self.logger = logging.getLogger(__name__)
        self.version = version

    def load_sequences(self, source: SequenceSource, max_entries: Optional[int] = None) -> SequenceSet:
        """
        Resolve a sequence source to a SequenceSet.

        Args:
            source: A SequenceSet, a FASTA path, or an iterable of strings or
                (identifier, text) pairs
            max_entries: Read at most this many records

        Returns:
            SequenceSet in input order
        """
        if isinstance(source, SequenceSet):
            sequences = source
        elif isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                raise ConfigurationError(f"Sequence file not found: {path}")
            return read_fasta(path, max_entries=max_entries)
        else:
            sequences = SequenceSet.from_records(source)

        if max_entries is not None:
            sequences = SequenceSet(sequences.sequences[:max_entries])
        return sequences

    def execute_search(self, sequences: SequenceSet, config: SearchConfig) -> SearchResult:
        """Run the configured search strategy."""
        return run_search(sequences, config)

    def align(self, sequences: SequenceSet, report: MotifReport, top: int = 5) -> None:
        """Rank the distinct motifs and locate the final profile in every sequence."""
        report.ranking = rank_motifs(sequences, report.unique_motifs, top=top, n_jobs=report.config.n_jobs)
        for score, motif in report.ranking:
            self.logger.info(f"{score}: {motif}")
        report.sites = locate_with_profile(sequences, report.profile)

    def write_outputs(
        self,
        report: MotifReport,
        output_path: Optional[str] = None,
        meme_path: Optional[str] = None,
        sites_path: Optional[str] = None,
    ) -> None:
        """Persist whichever outputs were requested."""
        if output_path is not None:
            path = output_path or default_output_path(report.config.k, report.started)
            write_results(
                path,
                report.result,
                report.config,
                n_entries=report.n_sequences,
                started=report.started,
                ranking=report.ranking,
                version=self.version,
            )
            report.output_path = str(path)
            self.logger.info(f"Results saved to {path}")
        if meme_path is not None:
            write_meme(report.profile, f"{report.result.algorithm}_{report.consensus}", meme_path)
            self.logger.info(f"Profile saved to {meme_path}")
        if sites_path is not None:
            write_sites(report.sites, sites_path)
            self.logger.info(f"Sites saved to {sites_path}")

    def run_pipeline(
        self,
        source: SequenceSource,
        config: SearchConfig,
        max_entries: Optional[int] = None,
        align: bool = False,
        top: int = 5,
        output_path: Optional[str] = None,
        meme_path: Optional[str] = None,
        sites_path: Optional[str] = None,
    ) -> MotifReport:
        """
        Main entry point for the pipeline.

        Args:
            source: Sequence source (see load_sequences)
            config: Search parameters
            max_entries: Read at most this many records
            align: Rank distinct motifs by local alignment and locate sites
            top: Number of ranked motifs to keep
            output_path: Report file; AUTO_OUTPUT picks a generated name
            meme_path: Write the final profile in MEME format
            sites_path: Write located sites as TSV

        Returns:
            MotifReport
        """
        started = datetime.now()
        clock = time.perf_counter()
        config.validate()

        sequences = self.load_sequences(source, max_entries=max_entries)
        sequences.validate_motif_length(config.k)
        self.logger.info(f"Starting {config.algorithm} search over {len(sequences)} sequence(s)")

        result = self.execute_search(sequences, config)
        profile = build_profile(result.motifs, config.k, config.extra)
        distinct = unique_motifs(result.motifs)
        self.logger.info(f"Unique motifs: {' '.join(distinct)}")
        self.logger.info(f"Consensus string: {result.consensus}")

        report = MotifReport(
            result=result,
            config=config,
            n_sequences=len(sequences),
            profile=profile,
            unique_motifs=distinct,
            started=started,
        )

        if align or sites_path is not None:
            self.align(sequences, report, top=top)

        self.write_outputs(report, output_path=output_path, meme_path=meme_path, sites_path=sites_path)
        report.elapsed = time.perf_counter() - clock
        self.logger.info(f"Done in {report.elapsed:.3f} seconds")
        return report


def run_pipeline(
    source: SequenceSource,
    config: SearchConfig,
    max_entries: Optional[int] = None,
    align: bool = False,
    top: int = 5,
    output_path: Optional[str] = None,
    meme_path: Optional[str] = None,
    sites_path: Optional[str] = None,
    version: str = "",
) -> MotifReport:
    """Module-level function to run the pipeline."""
    pipeline = Pipeline(version=version)
    return pipeline.run_pipeline(
        source,
        config,
        max_entries=max_entries,
        align=align,
        top=top,
        output_path=output_path,
        meme_path=meme_path,
        sites_path=sites_path,
    )
