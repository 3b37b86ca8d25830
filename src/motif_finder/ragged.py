from typing import List

import numpy as np


class RaggedData:
    """
    Flat storage for integer-encoded sequences of different lengths.

    All sequences live back to back in ``data``; sequence ``i`` occupies
    ``data[offsets[i]:offsets[i + 1]]``. The compiled kernels in
    :mod:`motif_finder.functions` take ``data`` and ``offsets`` directly so
    that no padding is needed.
    """

    def __init__(self, data: np.ndarray, offsets: np.ndarray):
        """Initialize the RaggedData object."""
        self.data = data
        self.offsets = offsets

    def get_length(self, i: int) -> int:
        """Return the length of the i-th sequence."""
        return int(self.offsets[i + 1] - self.offsets[i])

    def get_slice(self, i: int) -> np.ndarray:
        """Return a view on the i-th sequence."""
        return self.data[self.offsets[i] : self.offsets[i + 1]]

    @property
    def lengths(self) -> np.ndarray:
        """Lengths of all sequences."""
        return np.diff(self.offsets)

    @property
    def num_sequences(self) -> int:
        """Return the number of sequences."""
        return self.offsets.size - 1


def ragged_from_list(data_list: List[np.ndarray], dtype=None) -> RaggedData:
    """Create RaggedData from a list of numpy arrays."""
    if len(data_list) == 0:
        return RaggedData(np.empty(0, dtype=dtype if dtype else np.int8), np.zeros(1, dtype=np.int64))

    if dtype is None:
        dtype = data_list[0].dtype

    offsets = np.zeros(len(data_list) + 1, dtype=np.int64)
    offsets[1:] = np.cumsum([len(arr) for arr in data_list])

    data = np.empty(offsets[-1], dtype=dtype)
    for i, arr in enumerate(data_list):
        data[offsets[i] : offsets[i + 1]] = arr

    return RaggedData(data, offsets)
