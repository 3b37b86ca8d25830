"""
Tests for file formats, the pipeline and the public API.
"""

from datetime import datetime

import numpy as np
import pandas as pd
import pytest

from motif_finder import __version__, find_motifs
from motif_finder.api import create_config, normalize_algorithm
from motif_finder.io import (
    SEPARATOR,
    default_output_path,
    read_fasta,
    read_meme_matrix,
    write_meme,
    write_motifs,
    write_results,
    write_sites,
)
from motif_finder.pipeline import AUTO_OUTPUT, Pipeline, run_pipeline
from motif_finder.scoring import build_profile
from motif_finder.search import SearchConfig, SearchResult
from motif_finder.sequences import ConfigurationError, InvalidSymbolError

PLANTED_MOTIF = "TTGACGCA"
PLANTED_POSITIONS = [3, 17, 25, 9, 30, 0, 21, 12]


def test_read_fasta(promoters_fasta):
    """Test FASTA parsing with multi-line records"""
    sequences = read_fasta(promoters_fasta)

    assert len(sequences) == 8
    assert sequences.identifiers[0] == "promoter_1"
    assert all(len(seq) == 40 for seq in sequences)
    assert [seq.text.find(PLANTED_MOTIF) for seq in sequences] == PLANTED_POSITIONS


def test_read_fasta_max_entries(promoters_fasta):
    """Test limiting the number of records read"""
    assert len(read_fasta(promoters_fasta, max_entries=3)) == 3
    assert len(read_fasta(promoters_fasta, max_entries=0)) == 0
    assert len(read_fasta(promoters_fasta, max_entries=100)) == 8


def test_read_fasta_invalid_symbol(temp_dir):
    """Test that a record with N is rejected by name"""
    path = temp_dir / "bad.fa"
    path.write_text(">good\nACGT\n>broken\nACNT\n")

    with pytest.raises(InvalidSymbolError, match="broken"):
        read_fasta(path)


def test_write_motifs(temp_dir):
    """Test motif FASTA output"""
    path = temp_dir / "motifs.fa"
    write_motifs(["ACG", "ACT"], path)

    assert path.read_text() == ">motif 1\nACG\n>motif 2\nACT\n"


def test_default_output_path():
    """Test the generated report name"""
    name = default_output_path(8, datetime(2024, 1, 2, 3, 4, 5))
    assert name.startswith("MotifFinder-output-")
    assert name.endswith("-8.txt")


def test_write_results(temp_dir):
    """Test the text report layout"""
    result = SearchResult(
        algorithm="gibbs",
        motifs=("ACG", "ACT"),
        positions=(0, 2),
        score=1,
        consensus="ACG",
        restart=0,
    )
    config = SearchConfig(algorithm="gibbs", k=3, restarts=5, iterations=100)
    path = temp_dir / "report.txt"
    write_results(path, result, config, 2, datetime(2024, 1, 2, 3, 4, 5), ranking=[(6, "ACG")], version="1.0")

    lines = path.read_text().splitlines()
    assert lines[0] == "MotifFinder 1.0"
    assert "Command: Gibbs Sampler" in lines
    assert "runs: 5" in lines
    assert "iterations: 100" in lines
    assert "Start time: 2024-01-02 03:04:05" in lines
    assert "Consensus string: ACG" in lines
    assert "Best motif: ACG" in lines
    assert "Best motif score: 6" in lines
    separator = lines.index(SEPARATOR)
    assert lines[separator + 1 :] == [">motif 1", "ACG", ">motif 2", "ACT"]


def test_write_meme(temp_dir):
    """Test MEME output of a profile"""
    profile = build_profile(["ACG", "ACT"], 3, extra=1.0)
    path = temp_dir / "motif.meme"
    write_meme(profile, "test_motif", path)

    text = path.read_text()
    assert "MOTIF test_motif" in text
    assert "w= 3 nsites= 2" in text
    np.testing.assert_allclose(read_meme_matrix(path), profile.values, atol=1e-6)


def test_pipeline_median(planted_set):
    """Test the median pipeline on an in-memory set"""
    report = run_pipeline(planted_set, SearchConfig(algorithm="median", k=6))

    assert report.consensus == "GATTAC"
    assert report.score == 0
    assert report.unique_motifs == ["GATTAC"]
    assert report.profile.n_motifs == 4
    assert report.ranking == []

    summary = report.summary()
    assert summary["positions"] == [2, 8, 13, 0]
    assert "best_restart" not in summary
    assert len(summary["information_content"]) == 6


def test_pipeline_align_and_outputs(promoters_fasta, temp_dir):
    """Test alignment, report, MEME and sites outputs"""
    report_path = temp_dir / "report.txt"
    meme_path = temp_dir / "motif.meme"
    sites_path = temp_dir / "sites.tsv"
    config = SearchConfig(algorithm="median", k=8)

    report = Pipeline(version=__version__).run_pipeline(
        promoters_fasta,
        config,
        align=True,
        output_path=str(report_path),
        meme_path=str(meme_path),
        sites_path=str(sites_path),
    )

    assert report.consensus == PLANTED_MOTIF
    assert report.ranking[0] == (64, PLANTED_MOTIF)
    assert [site.position for site in report.sites] == PLANTED_POSITIONS
    assert report.output_path == str(report_path)

    assert f"Best motif: {PLANTED_MOTIF}" in report_path.read_text()
    assert read_meme_matrix(meme_path).shape == (4, 8)
    sites = pd.read_csv(sites_path, sep="\t")
    assert list(sites["start"]) == PLANTED_POSITIONS
    assert list(sites["site"]) == [PLANTED_MOTIF] * 8


def test_pipeline_auto_output(planted_set, temp_dir, monkeypatch):
    """Test the generated report name lands in the working directory"""
    monkeypatch.chdir(temp_dir)
    report = run_pipeline(planted_set, SearchConfig(algorithm="median", k=6), output_path=AUTO_OUTPUT)

    written = list(temp_dir.glob("MotifFinder-output-*-6.txt"))
    assert len(written) == 1
    assert report.summary()["output"] == written[0].name


def test_pipeline_max_entries(promoters_fasta):
    """Test reading only the first records"""
    report = run_pipeline(promoters_fasta, SearchConfig(algorithm="median", k=8), max_entries=3)

    assert report.n_sequences == 3
    assert len(report.motifs) == 3


def test_pipeline_missing_file(temp_dir):
    """Test a missing FASTA path"""
    with pytest.raises(ConfigurationError, match="not found"):
        run_pipeline(temp_dir / "missing.fa", SearchConfig())


def test_find_motifs_randomized(planted_set):
    """Test the single-call API"""
    report = find_motifs(planted_set, algorithm="randomized", k=6, restarts=20, seed=1)

    assert len(report.motifs) == 4
    assert report.result.restart is not None
    assert report.summary()["best_restart"] == report.result.restart


def test_find_motifs_from_strings():
    """Test the API accepts plain strings"""
    report = find_motifs(["ACGTTTTT", "TTTACGTT", "TTTTTACG"], algorithm="median-string", k=3, align=True)

    assert report.consensus == "ACG"
    assert [site.position for site in report.sites] == [0, 3, 5]


def test_algorithm_aliases():
    """Test alias normalization"""
    assert normalize_algorithm("Gibbs-Sampler") == "gibbs"
    assert normalize_algorithm("rms") == "randomized"

    with pytest.raises(ConfigurationError, match="Unknown algorithm"):
        normalize_algorithm("greedy")


def test_create_config_validates():
    """Test that create_config rejects bad parameters"""
    config = create_config(algorithm="gibbs", k=5, iterations=10, restarts=2)
    assert config.algorithm == "gibbs"

    with pytest.raises(ConfigurationError):
        create_config(algorithm="gibbs", iterations=0)
