"""
Pytest configuration and common fixtures for motif_finder tests.
"""
import tempfile
from pathlib import Path

import pytest

from motif_finder.sequences import SequenceSet


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def examples_dir():
    """Return path to examples directory."""
    return Path(__file__).parent.parent / "examples"


@pytest.fixture
def promoters_fasta(examples_dir):
    """Eight 40 bp sequences sharing the planted 8-mer TTGACGCA."""
    return examples_dir / "promoters.fasta"


@pytest.fixture
def small_set():
    """Three 8 bp sequences with ACG planted at different offsets."""
    return SequenceSet.from_records(["ACGTTTTT", "TTTACGTT", "TTTTTACG"])


@pytest.fixture
def planted_set():
    """Four 20 bp sequences; GATTAC is the only 6-mer they all share."""
    return SequenceSet.from_records(
        [
            ("s1", "CTGATTACATTTAAATCAAC"),
            ("s2", "AGGAATACGATTACACACTC"),
            ("s3", "CTCCTGCCGCTGAGATTACC"),
            ("s4", "GATTACACCATGAAAAGGCC"),
        ]
    )
