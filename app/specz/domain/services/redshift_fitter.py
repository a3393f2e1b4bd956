"""
Sub-pixel redshift fitting of correlation peaks.
"""
from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np
from specz.config.settings import PipelineSettings, get_settings
from specz.config.logging import get_logger
from specz.core.exceptions import InvalidInputError, NoMatchError
from specz.domain.models.correlation import CorrelationResult, RedshiftMatch
from specz.domain.models.template import Template

logger = get_logger(__name__)


def binary_search(data: Sequence[float], val: float) -> Tuple[int, int]:
    """
    Locate `val` in the ascending sequence `data`.

    Returns:
        (i, i) on an exact hit, otherwise the indices bracketing val. Values
        below the first or above the last element return that end twice.
    """
    high_index = len(data) - 1
    low_index = 0
    if high_index < 0:
        raise InvalidInputError("Cannot search an empty sequence")
    if val < data[low_index]:
        return low_index, low_index
    if val > data[high_index]:
        return high_index, high_index
    while high_index > low_index:
        index = (high_index + low_index) // 2
        sub = data[index]
        if data[low_index] == val:
            return low_index, low_index
        elif sub == val:
            return index, index
        elif data[high_index] == val:
            return high_index, high_index
        elif sub > val:
            if high_index == index:
                return low_index, high_index
            high_index = index
        else:
            if low_index == index:
                return low_index, high_index
            low_index = index
    return low_index, high_index


def fit_around_index(data: np.ndarray, index: int) -> float:
    """
    Vertex of the parabola through data[index - 1], data[index], data[index + 1].
    An index on the array boundary or a flat parabola returns `index` itself.
    """
    if index < 1 or index + 1 >= len(data):
        logger.debug(f"Peak at boundary index {index}, no sub-pixel refinement")
        return float(index)
    y0, y1, y2 = data[index - 1], data[index], data[index + 1]
    # y = a x^2 + b x + c through x = -1, 0, 1
    a = (y0 + y2) / 2.0 - y1
    b = (y2 - y0) / 2.0
    if a == 0:
        logger.debug(f"Flat correlation around index {index}, no sub-pixel refinement")
        return float(index)
    return index - b / (2 * a)


def get_redshift_for_non_integer_index(template: Template, index: float) -> float:
    """Map a fractional index of a pruned correlation curve to a redshift. Zero lag sits at n // 2."""
    gap = template.log_lambda[1] - template.log_lambda[0]
    num = len(template.log_lambda) // 2
    return float(np.power(10.0, (index + template.start_z_index - num) * gap) * (1 + template.redshift) - 1)


def get_fit(template: Template, xcor: np.ndarray, val: float, fit_window: int = 7) -> float:
    """
    Refine a candidate redshift: find the correlation maximum within
    `fit_window` samples of val's position on the template grid and fit a
    parabola around it.

    Raises:
        NoMatchError: If the window holds no usable correlation sample
    """
    bracket_index, _ = binary_search(template.zs, val)
    start_index = bracket_index - fit_window // 2
    lo = max(start_index, 0)
    hi = min(start_index + fit_window, len(xcor))
    if hi <= lo:
        raise NoMatchError(template.id)
    window = np.asarray(xcor[lo:hi], dtype=np.float64)
    if not np.isfinite(window).any():
        raise NoMatchError(template.id)
    best_index = lo + int(np.nanargmax(window))
    return get_redshift_for_non_integer_index(template, fit_around_index(xcor, best_index))


class RedshiftFitter:
    """
    Turns correlation peaks into ranked redshift matches.
    """

    def __init__(self, settings: Optional[PipelineSettings] = None):
        self.settings = settings or get_settings()

    def fit_redshift(self, template: Template, xcor: np.ndarray, candidate_redshift: float) -> float:
        return get_fit(template, xcor, candidate_redshift, self.settings.fit_window)

    def best_matches(
        self,
        results: Dict[str, CorrelationResult],
        templates: Dict[str, Template],
        max_matches: Optional[int] = None
    ) -> List[RedshiftMatch]:
        """
        Fit the highest correlation peaks across all templates.

        Args:
            results: Correlation results keyed by template id
            templates: The matched templates keyed by id
            max_matches: Number of matches to return, settings.max_matches by default

        Returns:
            Matches ordered by descending peak value. Peaks that cannot be
            fitted are logged and skipped.
        """
        max_matches = self.settings.max_matches if max_matches is None else max_matches
        candidates = [
            (peak.value, template_id, peak)
            for template_id, result in results.items()
            for peak in result.peaks
        ]
        candidates.sort(key=lambda c: c[0], reverse=True)

        matches: List[RedshiftMatch] = []
        for value, template_id, peak in candidates:
            if len(matches) >= max_matches:
                break
            result = results[template_id]
            try:
                z = self.fit_redshift(templates[template_id], result.xcor, result.zs[peak.index])
            except NoMatchError as e:
                logger.warning(e.message)
                continue
            matches.append(RedshiftMatch(template_id, z, value, peak.index))

        logger.debug(f"Fitted {len(matches)} of {len(candidates)} correlation peaks")
        return matches
