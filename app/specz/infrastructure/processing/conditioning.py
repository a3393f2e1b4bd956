"""
In-place conditioning stages applied to (intensity, variance) pairs before
cross-correlation, and the SignalConditioner that chains them.

Every stage modifies the float arrays it is handed and returns them. Callers
that still need the raw values must copy first. Window bounds are clamped to
the array, so short arrays degrade gracefully instead of raising.
"""
from typing import Iterable, Iterator, Optional, Tuple
import numpy as np
from numpy.polynomial import Polynomial
from specz.config.settings import PipelineSettings, get_settings
from specz.config.logging import get_logger
from specz.core.exceptions import DegenerateComputationError
from specz.domain.models.spectrum import Spectrum
from specz.infrastructure.processing.filters import (
    median_filter,
    box_car_smooth,
    broaden_error,
    max_median_adjust,
)
from specz.infrastructure.processing.resampler import LogWavelengthResampler
from specz.shared.utils.arrays import abs_mean, abs_max, get_area_in_array
from specz.shared.utils.validators import as_float_array, validate_spectrum_arrays

logger = get_logger(__name__)


def _check_divisor(value: float, what: str) -> float:
    if value == 0 or not np.isfinite(value):
        raise DegenerateComputationError(f"{what} is {value}")
    return value


def bad_pixel_mask(intensity: np.ndarray, variance: np.ndarray, min_val: float, max_val: float) -> np.ndarray:
    """True where a sample is NaN, out of [min_val, max_val] or has negative variance."""
    with np.errstate(invalid="ignore"):
        return (
            np.isnan(intensity) | np.isnan(variance)
            | (intensity > max_val) | (intensity < min_val)
            | (variance < 0)
        )


def remove_bad_pixels(
    intensity: np.ndarray,
    variance: np.ndarray,
    num_points: int = 3,
    min_val: float = -1e4,
    max_val: float = 1e6
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Replace bad samples with the mean of the good samples within `num_points`
    either side. Only samples that were good on entry count as neighbours, so
    a gap wider than 2 * num_points + 1 keeps its interior empty: with no good
    neighbour both intensity and variance become 0, which gives the sample
    zero weight downstream.
    """
    n = len(intensity)
    bad = bad_pixel_mask(intensity, variance, min_val, max_val)
    if not bad.any():
        return intensity, variance

    repaired = int(np.count_nonzero(bad))
    unrecoverable = 0
    good = ~bad
    for i in np.nonzero(bad)[0]:
        lo, hi = max(0, i - num_points), min(n, i + num_points + 1)
        neighbours = good[lo:hi]
        if neighbours.any():
            intensity[i] = intensity[lo:hi][neighbours].mean()
            variance[i] = variance[lo:hi][neighbours].mean()
        else:
            intensity[i] = 0.0
            variance[i] = 0.0
            unrecoverable += 1

    logger.debug(f"Repaired {repaired} bad pixels, {unrecoverable} without valid neighbours")
    return intensity, variance


def remove_nans(y: np.ndarray) -> np.ndarray:
    """In place replace NaNs with the preceding value, 0 at the start."""
    for i in np.nonzero(np.isnan(y))[0]:
        y[i] = 0.0 if i == 0 else y[i - 1]
    return y


def crop_sky(array: np.ndarray, max_value: float) -> np.ndarray:
    """In place cap values at max_value."""
    np.minimum(array, max_value, out=array)
    return array


def remove_cosmic_rays(
    intensity: np.ndarray,
    variance: np.ndarray,
    cosmic_iterations: int = 2,
    deviation_factor: float = 30.0,
    point_check: int = 2,
    max_error: float = 1e10
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Replace isolated spikes. A sample is rejected when it lies at least
    deviation_factor * rms from the mean and also differs from one of its
    immediate neighbours by more than that amount. It is replaced by the mean
    of the samples within `point_check` that lie within one rms of the mean,
    and its variance is set to `max_error`.
    """
    n = len(intensity)
    if n == 0:
        return intensity, variance

    for iteration in range(cosmic_iterations):
        mean = intensity.mean()
        rms = np.sqrt(np.mean((intensity - mean) ** 2))
        if rms == 0:
            logger.debug("Flat intensity, no cosmic rays to remove")
            break
        threshold = deviation_factor * rms
        rejected = 0
        for i in np.nonzero(np.abs(intensity - mean) >= threshold)[0]:
            max_neighbour = 0.0
            if i > 0:
                max_neighbour = abs(intensity[i - 1] - intensity[i])
            if i < n - 1:
                max_neighbour = max(max_neighbour, abs(intensity[i + 1] - intensity[i]))
            if max_neighbour > threshold:
                lo, hi = max(0, i - point_check), min(n, i + point_check + 1)
                window = intensity[lo:hi]
                calm = window[np.abs(window - mean) < rms]
                intensity[i] = calm.mean() if len(calm) else 0.0
                variance[i] = max_error
                rejected += 1
        logger.debug(f"Cosmic ray pass {iteration + 1}: rejected {rejected} pixels")
    return intensity, variance


def _fit_polynomial(x: np.ndarray, y: np.ndarray, deg: int) -> Polynomial:
    if len(x) == 0:
        return Polynomial([0.0])
    deg = min(deg, len(x) - 1)
    if np.ptp(x) == 0:
        deg = 0
    if deg == 0:
        return Polynomial([float(np.mean(y))])
    return Polynomial.fit(x, y, deg)


def iter_poly_fit_reject(
    lam: np.ndarray,
    intensity: np.ndarray,
    poly_deg: int = 7,
    poly_fit_iterations: int = 15,
    poly_fit_reject_deviation: float = 3.5
) -> Iterator[Tuple[Polynomial, float]]:
    """
    Yield (fit, residual standard deviation) for each rejection pass. After
    each pass the points further than poly_fit_reject_deviation standard
    deviations from the fit are dropped; iteration stops when none are.
    The inputs are not modified.
    """
    x = np.array(lam, dtype=np.float64)
    y = np.array(intensity, dtype=np.float64)
    for _ in range(poly_fit_iterations):
        fit = _fit_polynomial(x, y, poly_deg)
        residual = y - fit(x)
        std = float(np.std(residual)) if len(residual) else 0.0
        yield fit, std
        if std == 0:
            break
        rejected = np.abs(residual) > poly_fit_reject_deviation * std
        if not rejected.any():
            break
        x, y = x[~rejected], y[~rejected]


def poly_fit_reject(
    lam: np.ndarray,
    intensity: np.ndarray,
    poly_deg: int = 7,
    poly_fit_iterations: int = 15,
    poly_fit_reject_deviation: float = 3.5
) -> np.ndarray:
    """
    Subtract, in place, a polynomial continuum fitted with iterative outlier
    rejection. The final fit is evaluated on the full wavelength array.

    Returns:
        The subtracted continuum
    """
    fit = None
    for fit, _ in iter_poly_fit_reject(lam, intensity, poly_deg, poly_fit_iterations, poly_fit_reject_deviation):
        pass
    if fit is None:
        logger.warning("No continuum fit iterations configured, continuum left in place")
        return np.zeros_like(intensity)
    final = fit(np.asarray(lam, dtype=np.float64))
    intensity -= final
    return final


def subtract_poly_fit(lam: np.ndarray, intensity: np.ndarray, poly_deg: int = 7) -> np.ndarray:
    """In place subtract a single least-squares polynomial fit and return it."""
    final = _fit_polynomial(np.asarray(lam, dtype=np.float64), intensity, poly_deg)(lam)
    intensity -= final
    return final


def smooth_and_subtract(intensity: np.ndarray, median_width: int = 51, smooth_width: int = 121) -> np.ndarray:
    """In place subtract a median filtered then box-car smoothed continuum."""
    if len(intensity) == 0:
        return intensity
    smoothed = box_car_smooth(median_filter(intensity, median_width), smooth_width)
    intensity -= smoothed
    return intensity


def adjust_error(
    variance: np.ndarray,
    broaden_window: int = 3,
    error_median_window: int = 101,
    error_median_weight: float = 0.6,
    max_error: float = 1e10
) -> np.ndarray:
    """Broaden variance to local maxima then floor it at a weighted local median."""
    if len(variance) == 0:
        return variance
    broaden_error(variance, broaden_window, max_error)
    max_median_adjust(variance, error_median_window, error_median_weight, max_error)
    return variance


def divide_by_error(intensity: np.ndarray, variance: np.ndarray, unweighted: Optional[np.ndarray] = None) -> np.ndarray:
    """
    In place divide by variance. Samples without positive variance, and those
    flagged in `unweighted`, are zeroed.
    """
    weighted = variance > 0
    if unweighted is not None:
        weighted &= ~unweighted
    intensity[weighted] /= variance[weighted]
    intensity[~weighted] = 0.0
    return intensity


def apply_spectral_line_weighting(
    log_lambda: np.ndarray,
    intensity: np.ndarray,
    lines: Iterable,
    base_weight: float = 0.7,
    gaussian_width: float = 1e-5
) -> np.ndarray:
    """
    Down-weight intensity away from known spectral lines. Each pixel's weight
    starts at base_weight and gains a Gaussian bump per line; intensity is
    multiplied by min(1, weight).
    """
    line_logs = np.array([getattr(line, "log_wavelength", line) for line in lines], dtype=np.float64)
    weights = np.full(len(intensity), base_weight, dtype=np.float64)
    if len(line_logs):
        delta = np.asarray(log_lambda)[:, None] - line_logs[None, :]
        weights += np.exp(-(delta ** 2) / gaussian_width).sum(axis=1)
    intensity *= np.minimum(1.0, weights)
    return intensity


def cosine_taper(intensity: np.ndarray, zero_pixel_width: int, taper_width: int) -> np.ndarray:
    """
    Zero `zero_pixel_width` pixels at each end and roll the next `taper_width`
    pixels in with a quarter sine, symmetrically at both ends.
    """
    n = len(intensity)
    zero = min(max(zero_pixel_width, 0), n)
    intensity[:zero] = 0.0
    intensity[n - zero:] = 0.0
    if taper_width <= 0:
        return intensity

    i = np.arange(taper_width)
    factor = np.sin(i * 0.5 * np.pi / taper_width)
    left = i + zero
    right = n - 1 - i - zero
    inside = (left >= 0) & (left < n)
    intensity[left[inside]] *= factor[inside]
    inside = (right >= 0) & (right < n)
    intensity[right[inside]] *= factor[inside]
    return intensity


def normalise_via_area(
    array: np.ndarray,
    variance: Optional[np.ndarray] = None,
    target: float = 100000.0,
    start: Optional[int] = None,
    end: Optional[int] = None
) -> Optional[float]:
    """
    In place scale array (and variance by the same factor) so the sum of
    absolute values over [start, end] equals `target`.

    Returns:
        The applied ratio, or None when the area is zero and nothing changed
    """
    try:
        area = _check_divisor(get_area_in_array(array, start, end), "Area")
    except DegenerateComputationError as e:
        logger.warning(f"{e.message}, skipping area normalisation")
        return None
    r = target / area
    array *= r
    if variance is not None:
        variance *= r
    return r


def normalise_mean_dev(intensity: np.ndarray, clip_value: float = 30.0, max_iterations: int = 1000) -> np.ndarray:
    """
    Clip values beyond (clip_value + 0.01) mean absolute deviations until none
    remain, then divide by the final mean absolute deviation.
    """
    if len(intensity) == 0:
        return intensity

    for _ in range(max_iterations):
        mean_deviation = abs_mean(intensity)
        clip = (clip_value + 0.01) * mean_deviation
        if abs_max(intensity) > clip:
            np.clip(intensity, -clip, clip, out=intensity)
        else:
            break
    else:
        logger.warning(f"Mean deviation clipping did not settle after {max_iterations} passes")

    try:
        _check_divisor(mean_deviation, "Mean absolute deviation")
    except DegenerateComputationError as e:
        logger.warning(f"{e.message}, leaving intensity unnormalised")
        return intensity
    intensity /= mean_deviation
    return intensity


class SignalConditioner:
    """
    Applies the conditioning stages in a fixed order using one settings object.
    The stage methods are thin wrappers binding the configured parameters.
    """

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        lines: Optional[Iterable] = None,
        resampler: Optional[LogWavelengthResampler] = None
    ):
        self.settings = settings or get_settings()
        self.lines = list(lines) if lines is not None else None
        self.resampler = resampler or LogWavelengthResampler(self.settings)
        logger.debug(f"SignalConditioner initialized with {len(self.lines or [])} spectral lines")

    def remove_bad_pixels(self, intensity, variance):
        s = self.settings
        return remove_bad_pixels(intensity, variance, s.num_points, s.min_val, s.max_val)

    def remove_cosmic_rays(self, intensity, variance):
        s = self.settings
        return remove_cosmic_rays(intensity, variance, s.cosmic_iterations, s.deviation_factor, s.point_check, s.max_error)

    def poly_fit_reject(self, lam, intensity):
        s = self.settings
        return poly_fit_reject(lam, intensity, s.poly_deg, s.poly_fit_iterations, s.poly_fit_reject_deviation)

    def smooth_and_subtract(self, intensity):
        return smooth_and_subtract(intensity, self.settings.median_width, self.settings.smooth_width)

    def adjust_error(self, variance):
        s = self.settings
        return adjust_error(variance, s.broaden_window, s.error_median_window, s.error_median_weight, s.max_error)

    def apply_spectral_line_weighting(self, log_lambda, intensity):
        if not self.lines:
            return intensity
        s = self.settings
        return apply_spectral_line_weighting(log_lambda, intensity, self.lines, s.base_weight, s.gaussian_width)

    def taper_spectra(self, intensity):
        return cosine_taper(intensity, self.settings.zero_pixel_width, self.settings.taper_width)

    def normalise(self, intensity):
        return normalise_mean_dev(intensity, self.settings.clip_value)

    def normalise_via_area(self, array, variance=None, start=None, end=None):
        return normalise_via_area(array, variance, self.settings.normalised_area, start, end)

    def condition(self, spectrum: Spectrum, quasar: bool = False) -> Tuple[np.ndarray, np.ndarray]:
        """
        Run the full chain on a spectrum.

        Args:
            spectrum: Raw spectrum; its intensity and variance arrays are repaired in place
            quasar: Use the quasar wavelength grid

        Returns:
            Tuple of (log_lambda, conditioned_intensity) on the configured grid

        Raises:
            InvalidInputError: If the arrays are structurally invalid
        """
        wavelength = as_float_array(spectrum.wavelength, "wavelength")
        intensity = as_float_array(spectrum.intensity, "intensity")
        variance = as_float_array(spectrum.variance, "variance")
        validate_spectrum_arrays(wavelength, intensity, variance)

        self.remove_bad_pixels(intensity, variance)

        grid = self.resampler.grid(quasar=quasar)
        log_lambda, flux = self.resampler.to_log_grid(wavelength, intensity, grid)
        _, var = self.resampler.to_log_grid(wavelength, variance, grid)
        # Zero variance marks samples with no data; error adjustment would raise it
        unweighted = var <= 0

        self.remove_cosmic_rays(flux, var)
        self.poly_fit_reject(log_lambda, flux)
        self.smooth_and_subtract(flux)
        self.adjust_error(var)
        divide_by_error(flux, var, unweighted)
        self.apply_spectral_line_weighting(log_lambda, flux)
        self.taper_spectra(flux)
        self.normalise(flux)

        logger.debug(f"Conditioned {spectrum!r} onto {grid}")
        return log_lambda, flux
