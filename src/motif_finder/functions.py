import numpy as np
from numba import njit, prange

from motif_finder.ragged import RaggedData

NUM_SYMBOLS = 4


@njit(cache=True)
def count_windows(data, offsets, positions, k, exclude):
    """Count symbols per column over the windows starting at ``positions``.

    Sequence ``exclude`` is skipped (pass -1 to count every sequence).
    """
    counts = np.zeros((NUM_SYMBOLS, k), dtype=np.float64)
    n_seq = len(offsets) - 1
    for i in range(n_seq):
        if i == exclude:
            continue
        start = offsets[i] + positions[i]
        for j in range(k):
            code = data[start + j]
            if code < NUM_SYMBOLS:
                counts[code, j] += 1.0
    return counts


@njit(cache=True)
def window_probabilities(seq, profile):
    """Probability of every window of ``seq`` under a 4 x k profile."""
    k = profile.shape[1]
    n_windows = seq.shape[0] - k + 1
    if n_windows < 0:
        n_windows = 0
    probabilities = np.empty(n_windows, dtype=np.float64)
    for start in range(n_windows):
        prob = 1.0
        for j in range(k):
            code = seq[start + j]
            if code >= NUM_SYMBOLS:
                prob = 0.0
                break
            prob *= profile[code, j]
        probabilities[start] = prob
    return probabilities


@njit(parallel=True, cache=True)
def _best_windows_jit(data, offsets, profile):
    """Most probable window of every sequence, first occurrence on ties."""
    n_seq = len(offsets) - 1
    positions = np.zeros(n_seq, dtype=np.int64)
    best = np.zeros(n_seq, dtype=np.float64)
    for i in prange(n_seq):
        probabilities = window_probabilities(data[offsets[i] : offsets[i + 1]], profile)
        best_pos = 0
        best_prob = -1.0
        for start in range(probabilities.shape[0]):
            if probabilities[start] > best_prob:
                best_prob = probabilities[start]
                best_pos = start
        positions[i] = best_pos
        best[i] = best_prob
    return positions, best


def best_windows(sequences: RaggedData, profile: np.ndarray):
    """Return (positions, probabilities) of the most probable window per sequence."""
    return _best_windows_jit(sequences.data, sequences.offsets, np.ascontiguousarray(profile, dtype=np.float64))


@njit(cache=True)
def consensus_codes(counts):
    """Column-wise argmax of a 4 x k matrix, lowest symbol code on ties."""
    k = counts.shape[1]
    result = np.zeros(k, dtype=np.int8)
    for j in range(k):
        best = 0
        for code in range(1, NUM_SYMBOLS):
            if counts[code, j] > counts[best, j]:
                best = code
        result[j] = best
    return result


@njit(cache=True)
def motif_set_score(data, offsets, positions, k):
    """Distance score of the windows at ``positions`` against their consensus."""
    counts = count_windows(data, offsets, positions, k, -1)
    consensus = consensus_codes(counts)
    n_seq = len(offsets) - 1
    score = 0
    for j in range(k):
        score += n_seq - int(counts[consensus[j], j])
    return score, consensus


@njit(cache=True)
def min_hamming(seq, pattern):
    """Smallest Hamming distance between ``pattern`` and any window of ``seq``."""
    k = pattern.shape[0]
    best_distance = k + 1
    best_pos = 0
    for start in range(seq.shape[0] - k + 1):
        distance = 0
        for j in range(k):
            if seq[start + j] != pattern[j]:
                distance += 1
                if distance >= best_distance:
                    break
        if distance < best_distance:
            best_distance = distance
            best_pos = start
            if distance == 0:
                break
    return best_distance, best_pos


@njit(cache=True)
def closest_windows(data, offsets, pattern):
    """Closest window to ``pattern`` in every sequence and its distance."""
    n_seq = len(offsets) - 1
    positions = np.zeros(n_seq, dtype=np.int64)
    distances = np.zeros(n_seq, dtype=np.int64)
    for i in range(n_seq):
        distance, pos = min_hamming(data[offsets[i] : offsets[i + 1]], pattern)
        positions[i] = pos
        distances[i] = distance
    return positions, distances


@njit(cache=True)
def index_to_codes(index, k, out):
    """Write the base-4 digits of ``index`` into ``out`` (most significant first)."""
    value = index
    for j in range(k - 1, -1, -1):
        out[j] = value % NUM_SYMBOLS
        value //= NUM_SYMBOLS


@njit(cache=True)
def median_chunk(data, offsets, k, start, stop):
    """Best candidate pattern index in ``[start, stop)`` and its total distance.

    Candidates are visited in increasing index order and only a strictly
    smaller total replaces the current best, so the first minimum wins.
    """
    n_seq = len(offsets) - 1
    pattern = np.empty(k, dtype=np.int8)
    best_distance = n_seq * k + 1
    best_index = -1
    for index in range(start, stop):
        index_to_codes(index, k, pattern)
        total = 0
        for i in range(n_seq):
            distance, _ = min_hamming(data[offsets[i] : offsets[i + 1]], pattern)
            total += distance
            if total >= best_distance:
                break
        if total < best_distance:
            best_distance = total
            best_index = index
    return best_distance, best_index


@njit(cache=True)
def local_alignment_score(v, w, match, mismatch, indel):
    """Smith-Waterman score of the best local alignment of ``v`` and ``w``.

    Code 4 (``N``) never matches anything.
    """
    n = v.shape[0]
    m = w.shape[0]
    previous = np.zeros(m + 1, dtype=np.int64)
    current = np.zeros(m + 1, dtype=np.int64)
    best = 0
    for i in range(1, n + 1):
        current[0] = 0
        for j in range(1, m + 1):
            a = v[i - 1]
            b = w[j - 1]
            if a == b and a < NUM_SYMBOLS:
                diagonal = previous[j - 1] + match
            else:
                diagonal = previous[j - 1] + mismatch
            value = diagonal
            if previous[j] + indel > value:
                value = previous[j] + indel
            if current[j - 1] + indel > value:
                value = current[j - 1] + indel
            if value < 0:
                value = 0
            current[j] = value
            if value > best:
                best = value
        for j in range(m + 1):
            previous[j] = current[j]
    return best


@njit(parallel=True, cache=True)
def _batch_alignment_scores_jit(data, offsets, pattern, match, mismatch, indel):
    """Local alignment score of ``pattern`` against every sequence."""
    n_seq = len(offsets) - 1
    scores = np.zeros(n_seq, dtype=np.int64)
    for i in prange(n_seq):
        scores[i] = local_alignment_score(data[offsets[i] : offsets[i + 1]], pattern, match, mismatch, indel)
    return scores


def batch_alignment_scores(
    sequences: RaggedData, pattern: np.ndarray, match: int = 1, mismatch: int = 0, indel: int = -10
) -> np.ndarray:
    """Compute local alignment scores of one pattern against all sequences."""
    return _batch_alignment_scores_jit(sequences.data, sequences.offsets, pattern, match, mismatch, indel)


def information_content(profile: np.ndarray) -> np.ndarray:
    """Per-column information content in bits of a 4 x k probability matrix."""
    with np.errstate(divide="ignore", invalid="ignore"):
        entropy = -np.nansum(np.where(profile > 0, profile * np.log2(profile), 0.0), axis=0)
    return 2.0 - entropy
