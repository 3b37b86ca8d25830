"""
sequences
=========

Nucleotide alphabet, sequence containers and the error types raised when
input or parameters cannot be searched.

Sequences are kept twice: as upper-case strings for reporting and as
``int8`` codes (A=0, C=1, G=2, T=3) packed into a
:class:`~motif_finder.ragged.RaggedData` for the compiled kernels.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dc_field
from typing import Iterable, Iterator, List, Tuple, Union

import numpy as np

from motif_finder.ragged import RaggedData, ragged_from_list

ALPHABET = "ACGT"
INVALID_CODE = 4

_ENCODE_TABLE = bytearray([INVALID_CODE] * 256)
for _code, _char in enumerate(ALPHABET):
    _ENCODE_TABLE[ord(_char)] = _code
    _ENCODE_TABLE[ord(_char.lower())] = _code

_DECODER = np.array(list(ALPHABET) + ["N"], dtype="U1")


class ConfigurationError(ValueError):
    """Raised when parameters or inputs make a search impossible."""


class InvalidSymbolError(ConfigurationError):
    """Raised when a sequence or k-mer contains a symbol outside ACGT."""


def encode(text: str) -> np.ndarray:
    """Encode a nucleotide string to int8 codes, unknown symbols become 4."""
    return np.frombuffer(text.encode("ascii", errors="replace").translate(_ENCODE_TABLE), dtype=np.int8).copy()


def decode(codes: np.ndarray) -> str:
    """Decode int8 codes back to a nucleotide string."""
    return "".join(_DECODER[np.clip(codes, 0, INVALID_CODE)])


def check_symbols(text: str, label: str = "sequence") -> None:
    """Raise InvalidSymbolError if ``text`` has a symbol outside the alphabet."""
    invalid = sorted(set(text) - set(ALPHABET))
    if invalid:
        raise InvalidSymbolError(f"{label} contains symbols outside {ALPHABET}: {''.join(invalid)!r}")


@dataclass(frozen=True)
class Sequence:
    """
    Immutable nucleotide sequence.

    Attributes
    ----------
    identifier : str
        Record identifier, usually the first token of a FASTA header.
    text : str
        Upper-case sequence over A, C, G and T.
    """

    identifier: str
    text: str

    def __post_init__(self):
        """Upper-case and validate the sequence text."""
        text = self.text.upper()
        check_symbols(text, label=f"Sequence {self.identifier!r}")
        object.__setattr__(self, "text", text)

    @property
    def length(self) -> int:
        return len(self.text)

    def __len__(self) -> int:
        return len(self.text)

    def kmer(self, position: int, k: int) -> str:
        """Return the k-mer starting at ``position``."""
        if position < 0 or position + k > len(self.text):
            raise IndexError(f"Window {position}..{position + k} outside sequence of length {len(self.text)}")
        return self.text[position : position + k]

    def kmers(self, k: int) -> Iterator[str]:
        """Yield every k-mer window from left to right."""
        for position in range(len(self.text) - k + 1):
            yield self.text[position : position + k]

    def encode(self) -> np.ndarray:
        return encode(self.text)


SequenceRecord = Union[Sequence, str, Tuple[str, str]]


@dataclass(frozen=True)
class SequenceSet:
    """
    Ordered, immutable collection of sequences searched together.

    The integer encoding is computed once and shared by every search that
    uses this set.
    """

    sequences: Tuple[Sequence, ...]
    encoded: RaggedData = dc_field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self):
        """Build the packed integer encoding."""
        encoded = ragged_from_list([seq.encode() for seq in self.sequences], dtype=np.int8)
        object.__setattr__(self, "encoded", encoded)

    @classmethod
    def from_records(cls, records: Iterable[SequenceRecord]) -> "SequenceSet":
        """
        Build a set from sequences, plain strings or ``(identifier, text)`` pairs.

        Plain strings are named ``seq_1``, ``seq_2`` and so on.
        """
        sequences: List[Sequence] = []
        for index, record in enumerate(records, start=1):
            if isinstance(record, Sequence):
                sequences.append(record)
            elif isinstance(record, str):
                sequences.append(Sequence(f"seq_{index}", record))
            else:
                identifier, text = record
                sequences.append(Sequence(str(identifier), text))
        return cls(tuple(sequences))

    def __len__(self) -> int:
        return len(self.sequences)

    def __iter__(self) -> Iterator[Sequence]:
        return iter(self.sequences)

    def __getitem__(self, index: int) -> Sequence:
        return self.sequences[index]

    @property
    def identifiers(self) -> List[str]:
        return [seq.identifier for seq in self.sequences]

    @property
    def texts(self) -> List[str]:
        return [seq.text for seq in self.sequences]

    def validate_motif_length(self, k: int) -> None:
        """Raise ConfigurationError unless every sequence can hold a k-mer."""
        if k <= 0:
            raise ConfigurationError(f"Motif length k must be positive, got {k}")
        if len(self.sequences) == 0:
            raise ConfigurationError("Sequence collection is empty")
        too_short = [ident for ident, length in zip(self.identifiers, self.encoded.lengths) if length < k]
        if too_short:
            preview = ", ".join(too_short[:5])
            raise ConfigurationError(
                f"Motif length k={k} exceeds the length of {len(too_short)} sequence(s): {preview}"
            )
