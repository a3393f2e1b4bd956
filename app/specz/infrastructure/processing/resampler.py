"""
Resampling of spectra onto equispaced log10 wavelength grids.

Each target point owns the interval between the midpoints to its neighbours
(edge intervals are mirrored). The interval is located in the source array as
fractional indices and the source pixels overlapping it are averaged, weighted
by the length of the overlap.
"""
import math
from typing import Optional, Tuple
import numpy as np
from specz.config.settings import PipelineSettings, get_settings
from specz.config.logging import get_logger
from specz.core.exceptions import InvalidInputError
from specz.domain.models.grid import LogGrid
from specz.shared.utils.validators import as_float_array, validate_spectrum_arrays

logger = get_logger(__name__)


def find_corresponding_float_index(xs: np.ndarray, x: float, start: int = 0) -> float:
    """
    Fractional index of `x` inside the non-decreasing array `xs`, searching
    forward from `start`. Values below the first sample map to 0, values above
    the last sample map to len(xs) - 1.
    """
    n = len(xs)
    start = min(max(int(start), 0), n - 1)
    i = start + int(np.searchsorted(xs[start:], x, side="left"))
    if i >= n:
        return float(n - 1)
    if i == 0:
        return 0.0
    step = xs[i] - xs[i - 1]
    if step == 0:
        return float(i)
    return (i - 1) + (x - xs[i - 1]) / step


def get_avg_between(values: np.ndarray, start: float, end: float) -> float:
    """
    Average of `values` over the fractional index interval [start, end].
    Pixel k covers [k - 0.5, k + 0.5] and is weighted by its overlap with the
    interval. A zero-width interval returns the nearest sample.
    """
    n = len(values)
    lo = max(int(math.floor(start)), 0)
    hi = min(int(math.ceil(end)), n - 1)
    total = 0.0
    weight_sum = 0.0
    for k in range(lo, hi + 1):
        weight = min(k + 0.5, end) - max(k - 0.5, start)
        if weight > 0:
            total += weight * values[k]
            weight_sum += weight
    if weight_sum == 0:
        nearest = min(max(int(round(start)), 0), n - 1)
        return float(values[nearest])
    return total / weight_sum


def interpolate(xinterp: np.ndarray, xvals: np.ndarray, yvals: np.ndarray) -> np.ndarray:
    """
    Bin-average (xvals, yvals) onto the points xinterp. Both x arrays must be
    non-decreasing; the source search resumes where the previous bin ended.

    Raises:
        InvalidInputError: If fewer than 2 target points are requested
    """
    if xinterp is None or len(xinterp) < 2:
        logger.error("Interpolation needs at least 2 target points")
        raise InvalidInputError("Interpolation needs at least 2 target points")
    if len(xvals) == 0 or len(xvals) != len(yvals):
        logger.error(f"Cannot interpolate from arrays of length {len(xvals)} and {len(yvals)}")
        raise InvalidInputError("Source arrays must be non-empty and of equal length")

    m = len(xinterp)
    result = np.empty(m, dtype=np.float64)
    xval_end_index = None
    for i in range(m):
        start_x = None if i == 0 else (xinterp[i] + xinterp[i - 1]) / 2
        end_x = None if i == m - 1 else (xinterp[i + 1] + xinterp[i]) / 2
        if start_x is None:
            start_x = 2 * xinterp[i] - end_x
        if end_x is None:
            end_x = 2 * xinterp[i] - start_x
        # Bins touch, so each one starts where the previous one ended
        if xval_end_index is not None:
            xval_start_index = xval_end_index
        else:
            xval_start_index = find_corresponding_float_index(xvals, start_x)
        xval_end_index = find_corresponding_float_index(xvals, end_x, int(math.floor(xval_start_index)))
        result[i] = get_avg_between(yvals, xval_start_index, xval_end_index)
    return result


class LogWavelengthResampler:
    """
    Moves spectra onto the configured log10 wavelength grids.
    """

    def __init__(self, settings: Optional[PipelineSettings] = None):
        self.settings = settings or get_settings()

    def grid(self, quasar: bool = False, num: Optional[int] = None) -> LogGrid:
        s = self.settings
        if quasar:
            return LogGrid(s.start_power_q, s.end_power_q, num or s.array_size)
        return LogGrid(s.start_power, s.end_power, num or s.array_size)

    @staticmethod
    def to_log_grid(wavelength, intensity, grid: LogGrid, log_input: bool = False) -> Tuple[np.ndarray, np.ndarray]:
        """
        Resample intensity onto `grid`.

        Args:
            wavelength: Source wavelengths in Angstroms (log10 Angstroms if log_input)
            intensity: Source intensity, same length as wavelength
            grid: Target grid
            log_input: Whether the source wavelengths are already log10 values

        Returns:
            Tuple of (log_lambda, resampled_intensity)

        Raises:
            InvalidInputError: If the grid has fewer than 2 points or the arrays disagree
        """
        if grid.num < 2:
            logger.error(f"Cannot resample onto {grid}: at least 2 points are required")
            raise InvalidInputError(f"Target grid needs at least 2 points, got {grid.num}")
        wavelength = as_float_array(wavelength, "wavelength")
        intensity = as_float_array(intensity, "intensity")
        validate_spectrum_arrays(wavelength, intensity, min_length=1)

        log_lambda = grid.log_lambda
        targets = log_lambda if log_input else np.power(10.0, log_lambda)
        resampled = interpolate(targets, wavelength, intensity)
        logger.debug(f"Resampled {len(intensity)} samples onto {grid}")
        return log_lambda, resampled

    def convert_lambda_to_log_lambda(self, wavelength, intensity, num: Optional[int] = None, quasar: bool = False) -> Tuple[np.ndarray, np.ndarray]:
        """Resample onto the standard (or quasar) grid of `num` points, array_size by default."""
        return self.to_log_grid(wavelength, intensity, self.grid(quasar=quasar, num=num))
