"""
Small array helpers shared by the conditioning and normalisation stages.
In-place helpers modify the float array they are given and return it.
"""
from typing import Optional, Tuple
import numpy as np


def get_average(array: np.ndarray) -> float:
    return float(np.mean(array))


def abs_mean(data: np.ndarray) -> float:
    return float(np.mean(np.abs(data)))


def abs_max(data: np.ndarray) -> float:
    return float(np.max(np.abs(data)))


def find_min_and_max(array: np.ndarray) -> Tuple[float, float]:
    return find_min_and_max_subset(array, 0, len(array))


def find_min_and_max_subset(ys: np.ndarray, start: int, end: int) -> Tuple[float, float]:
    """Min and max of ys[start:end]; an empty slice gives (9e9, -9e9)."""
    section = ys[max(start, 0):max(end, 0)]
    if len(section) == 0:
        return 9e9, -9e9
    return float(np.min(section)), float(np.max(section))


def scale(array: np.ndarray, r: float) -> np.ndarray:
    array *= r
    return array


def add(original: np.ndarray, addition: np.ndarray) -> np.ndarray:
    original += addition
    return original


def subtract(data: np.ndarray, other: np.ndarray) -> np.ndarray:
    data -= other
    return data


def get_area_in_array(array: np.ndarray, start: Optional[int] = None, end: Optional[int] = None) -> float:
    """
    Sum of absolute values between start and end, end INCLUSIVE.
    Bounds outside the array are clamped.
    """
    if start is None or start < 0:
        start = 0
    if end is None or end >= len(array):
        end = len(array) - 1
    if end < start:
        return 0.0
    return float(np.sum(np.abs(array[start:end + 1])))


def get_x_bounds(xs: np.ndarray, x_min: float, x_max: float) -> Tuple[int, int]:
    """
    Indexes bracketing the x values inside (x_min, x_max], padded by one
    sample on each side and clamped to the array.
    """
    n = len(xs)
    above_min = np.nonzero(xs > x_min)[0]
    above_max = np.nonzero(xs > x_max)[0]
    start = n - 1 if len(above_min) == 0 else max(int(above_min[0]) - 1, 0)
    end = n if len(above_max) == 0 else min(int(above_max[0]) + 1, n)
    return start, end


def normalise_via_shift(array: np.ndarray, bottom: float, top: float, optional: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Linearly map array onto [bottom, top]. `optional` is mapped with the same
    ratio and offset. A constant array is left unchanged.
    """
    lo, hi = find_min_and_max(array)
    if hi == lo:
        return array
    r = (top - bottom) / (hi - lo)
    if optional is not None:
        optional[:] = bottom + r * (optional - lo)
    array[:] = bottom + r * (array - lo)
    return array


def normalise_section(xs: np.ndarray, ys: np.ndarray, x_min: float, x_max: float, y_min: float, height: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Copy out the section of (xs, ys) inside the x bounds and rescale its ys so
    they span `height` above `y_min`.
    """
    start, end = get_x_bounds(xs, x_min, x_max)
    lo, hi = find_min_and_max_subset(ys, start, end)
    xss = np.array(xs[start:end], dtype=np.float64)
    yss = np.array(ys[start:end], dtype=np.float64)
    if hi > lo:
        yss = y_min + (height / (hi - lo)) * (yss - lo)
    return xss, yss
