"""
Windowed filters used to build smooth continua and to adjust variance.

The median and box-car filters pad with replicated edge samples the same
way for both filters: the window is primed with num + 2 copies of the first
sample followed by data[0:num - 1], then slides forward, repeating the last
sample once it runs off the end. The start of the array is therefore padded
differently from the end.
"""
from collections import deque
from typing import Callable, Optional
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from specz.config.logging import get_logger

logger = get_logger(__name__)


def _padded_windows(data: np.ndarray, window: int) -> np.ndarray:
    """One row per sample holding the window the sliding filters see."""
    n = len(data)
    num = (window - 1) // 2
    prefix = [0] * (num + 2) + [min(i, n - 1) for i in range(num - 1)]
    body = np.minimum(np.arange(n) + num, n - 1)
    stream = data[np.concatenate([np.asarray(prefix, dtype=np.intp), body])]
    width = len(prefix)
    # The window holds `width` samples; each step appends one and drops the oldest
    return sliding_window_view(stream[1:], width)[:n]


def median_filter(data, window: int) -> np.ndarray:
    """Sliding median with replicated edge padding. Returns a new array."""
    data = np.asarray(data, dtype=np.float64)
    if len(data) == 0:
        return data.copy()
    windows = _padded_windows(data, window)
    num = (window - 1) // 2
    return np.sort(windows, axis=1)[:, num]


def box_car_smooth(data, window: int) -> np.ndarray:
    """Sliding mean with the same padding as median_filter. Returns a new array."""
    data = np.asarray(data, dtype=np.float64)
    if len(data) == 0:
        return data.copy()
    windows = _padded_windows(data, window)
    return windows.sum(axis=1) / window


def fast_smooth(y: np.ndarray, num: int) -> np.ndarray:
    """
    Rolling-sum smooth over `num` pixels either side of each sample. NaNs are
    first replaced in place by the preceding value (0 at the start).
    """
    if num == 0:
        return y
    for i in range(len(y)):
        if np.isnan(y[i]):
            y[i] = 0.0 if i == 0 else y[i - 1]
    n = len(y)
    cumulative = np.concatenate([[0.0], np.cumsum(y)])
    lo = np.clip(np.arange(n) - num, 0, n)
    hi = np.clip(np.arange(n) + num + 1, 0, n)
    return (cumulative[hi] - cumulative[lo]) / (2 * num + 1)


def rolling_point_mean(intensity: np.ndarray, num_points: int, falloff: float) -> np.ndarray:
    """
    In place weighted rolling mean with weights falloff ** |offset|. Samples
    past the ends contribute nothing but the full weight total still divides.
    """
    n = len(intensity)
    weights = falloff ** np.abs(np.arange(-num_points, num_points + 1))
    total = weights.sum()
    result = np.zeros(n, dtype=np.float64)
    for offset, weight in zip(range(-num_points, num_points + 1), weights):
        lo = max(0, -offset)
        hi = min(n, n - offset)
        if hi > lo:
            result[lo:hi] += weight * intensity[lo + offset:hi + offset]
    intensity[:] = result / total
    return intensity


def _valid_window_filter(
    data: np.ndarray,
    window: int,
    max_error: float,
    reducer: Callable[[list, int], float]
) -> Optional[np.ndarray]:
    """
    Slide a window across the non-sentinel (< max_error) samples of `data`.
    Sentinel samples are skipped when filling the window and are passed
    through unchanged. Returns None when every sample is a sentinel.
    """
    n = len(data)
    num = (window - 1) // 2
    valid = data < max_error
    if not valid.any():
        return None

    first = data[int(np.argmax(valid))]
    win = deque([first] * (num + 2))
    for value in data:
        if len(win) >= window:
            break
        if value < max_error:
            win.append(value)

    result = data.copy()
    for i in range(n):
        if not valid[i]:
            continue
        index = i + num
        while index < n and not valid[index]:
            index += 1
        win.append(win[-1] if index >= n else data[index])
        win.popleft()
        result[i] = reducer(list(win), num)
    return result


def broaden_error(data: np.ndarray, window: int, max_error: float) -> np.ndarray:
    """In place widen each non-sentinel variance to its local window maximum."""
    result = _valid_window_filter(data, window, max_error, lambda win, num: max(win))
    if result is None:
        logger.warning("Every variance sample is a sentinel, skipping error broadening")
        return data
    data[:] = result
    return data


def max_median_adjust(data: np.ndarray, window: int, weight: float, max_error: float) -> np.ndarray:
    """
    In place raise each non-sentinel variance to `weight` times its local
    median. Values are never lowered.
    """
    result = _valid_window_filter(
        data, window, max_error, lambda win, num: weight * sorted(win)[num]
    )
    if result is None:
        logger.warning("Every variance sample is a sentinel, skipping median adjustment")
        return data
    np.maximum(data, result, out=data)
    return data
