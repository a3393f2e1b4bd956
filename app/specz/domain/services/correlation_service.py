"""
Cross-correlation of a conditioned spectrum against prepared templates.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional
import numpy as np
from specz.config.settings import PipelineSettings, get_settings
from specz.config.logging import get_logger
from specz.core.exceptions import DegenerateComputationError
from specz.domain.models.correlation import CorrelationResult, Peak
from specz.domain.models.template import Template
from specz.infrastructure.fft.transform import SpectrumTransform

logger = get_logger(__name__)


def circ_shift(data, num: int) -> np.ndarray:
    """Return data rotated so that out[i] = data[(i + num) % n]."""
    data = np.asarray(data)
    if len(data) == 0:
        return data.copy()
    return np.roll(data, -(num % len(data)))


def prune_results(final: np.ndarray, template: Template) -> np.ndarray:
    """Keep the correlation indices the template considers physical."""
    return final[template.start_z_index:template.end_z_index]


def subtract_mean_reject(final: np.ndarray, trim_amount: float) -> np.ndarray:
    """
    In place subtract a trimmed mean: floor(trim_amount * n / 2) of the
    smallest and of the largest values are ignored when averaging.
    """
    n = len(final)
    if n == 0:
        return final
    num = int(np.floor(trim_amount * n / 2))
    trimmed = np.sort(final)[num:n - num]
    if len(trimmed) == 0:
        trimmed = final
    final -= trimmed.mean()
    return final


def get_peaks(final, both: bool = True) -> List[Peak]:
    """
    Local extrema found with a five point test, skipping two samples at each
    end. A maximum is >= its next two neighbours and > its previous two; a
    minimum (only reported when `both`) mirrors that.
    """
    x = np.asarray(final, dtype=np.float64)
    n = len(x)
    if n < 5:
        return []
    c = x[2:n - 2]
    maxima = (c >= x[3:n - 1]) & (c >= x[4:n]) & (c > x[1:n - 3]) & (c > x[0:n - 4])
    mask = maxima
    if both:
        minima = (c <= x[3:n - 1]) & (c <= x[4:n]) & (c < x[1:n - 3]) & (c < x[0:n - 4])
        mask = maxima | minima
    return [Peak(i + 2, c[i]) for i in np.nonzero(mask)[0]]


def get_rms(data) -> float:
    """Root mean square deviation from the mean."""
    data = np.asarray(data, dtype=np.float64)
    if len(data) == 0:
        raise DegenerateComputationError("Cannot take the rms of an empty sequence")
    return float(np.sqrt(np.mean((data - data.mean()) ** 2)))


def rms_normalise_peaks(final: np.ndarray) -> np.ndarray:
    """
    In place divide by the rms of the curve's local extrema. The extrema carry
    the signal; the rms of the whole curve is dominated by noise.
    """
    try:
        rms = get_rms([p.value for p in get_peaks(final)])
        if rms == 0:
            raise DegenerateComputationError("Correlation extrema have zero rms")
    except DegenerateComputationError as e:
        logger.warning(f"{e.message}, correlation left unscaled")
        return final
    final /= rms
    return final


def normalise_xcorr(final: np.ndarray, trim_amount: float = 0.1) -> List[Peak]:
    """Normalise a correlation curve in place and return its maxima."""
    subtract_mean_reject(final, trim_amount)
    rms_normalise_peaks(final)
    return get_peaks(final, both=False)


class CorrelationEngine:
    """
    Matches one transformed spectrum against templates. Templates are only
    read, so a single set can be shared across threads.
    """

    def __init__(self, settings: Optional[PipelineSettings] = None):
        self.settings = settings or get_settings()

    def match_template(self, template: Template, spectrum_transform: SpectrumTransform) -> CorrelationResult:
        """
        Cross-correlate the spectrum with one template.

        Args:
            template: Prepared template with a conjugated transform
            spectrum_transform: Transform of the conditioned spectrum, same length

        Returns:
            CorrelationResult with the pruned, normalised curve and its maxima
        """
        final = spectrum_transform.multiply(template.transform).inverse()
        final = circ_shift(final, len(final) // 2)
        final = np.array(prune_results(final, template), dtype=np.float64)
        peaks = normalise_xcorr(final, self.settings.trim_amount)
        logger.debug(f"Template {template.id}: {len(peaks)} correlation peaks")
        return CorrelationResult(id=template.id, zs=template.zs, xcor=final, peaks=peaks)

    def match_templates(
        self,
        templates: Iterable[Template],
        spectrum_transform: SpectrumTransform
    ) -> Dict[str, CorrelationResult]:
        """
        Match against every template on a thread pool.

        Returns:
            Results keyed by template id; templates that fail are logged and left out
        """
        templates = list(templates)
        results: Dict[str, CorrelationResult] = {}
        if not templates:
            logger.warning("No templates to match against")
            return results

        max_workers = max(1, min(self.settings.max_workers, len(templates)))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_template = {
                executor.submit(self.match_template, template, spectrum_transform): template
                for template in templates
            }
            for future in as_completed(future_to_template):
                template = future_to_template[future]
                try:
                    results[template.id] = future.result()
                except Exception as e:
                    logger.error(f"Matching against template {template.id} failed: {e}", exc_info=True)

        logger.info(f"Matched spectrum against {len(results)}/{len(templates)} templates")
        return results
