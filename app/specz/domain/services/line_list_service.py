import os
from typing import Dict, List, Optional
from specz.config.settings import get_settings
from specz.config.logging import get_logger
from specz.core.exceptions import LineListNotFoundException, LineNotFoundException
from specz.domain.models.line import SpectralLine

logger = get_logger(__name__)

# Vacuum rest wavelengths in Angstroms
DEFAULT_LINES: Dict[str, List[float]] = {
    "Lyα": [1215.67],
    "N V": [1240.81],
    "Si IV": [1397.61],
    "C IV": [1549.48],
    "C III]": [1908.73],
    "Mg II": [2798.75],
    "[O II]": [3727.09, 3729.88],
    "Ca II K": [3934.78],
    "Ca II H": [3969.59],
    "Hδ": [4102.89],
    "Hγ": [4341.68],
    "Hβ": [4862.68],
    "[O III]": [4960.30, 5008.24],
    "Mg b": [5176.70],
    "Na D": [5895.60],
    "[N II]": [6549.86, 6585.27],
    "Hα": [6564.61],
    "[S II]": [6718.29, 6732.67],
}

class LineListService:
    """
    Supplies the spectral line catalog used for line weighting.
    Reads a `label: wavelength, wavelength` text file when one is configured,
    otherwise serves the built-in catalog.
    """
    def __init__(self, line_list_path: Optional[str] = None):
        if line_list_path is None:
            line_list_path = get_settings().line_list_path
        self.line_list_path = line_list_path
        self._cache: Optional[Dict[str, List[float]]] = None
        logger.info(f"LineListService initialized with file: {self.line_list_path or '<built-in>'}")

    def load_line_list(self) -> Dict[str, List[float]]:
        if self._cache is not None:
            return self._cache
        if not self.line_list_path:
            self._cache = {k: list(v) for k, v in DEFAULT_LINES.items()}
            return self._cache
        if not os.path.exists(self.line_list_path):
            logger.error(f"Line list file not found: {self.line_list_path}")
            raise LineListNotFoundException(self.line_list_path)
        line_dict = {}
        with open(self.line_list_path, 'r', encoding='utf-8') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if ':' not in line:
                    logger.warning(f"Skipping invalid line {line_num}: {line}")
                    continue
                key, values = line.split(':', 1)
                key = key.strip()
                wavelength_str = values.replace(',', ' ').replace(';', ' ')
                wavelengths = []
                for w_str in wavelength_str.split():
                    try:
                        w = float(w_str)
                    except ValueError:
                        logger.warning(f"Invalid wavelength '{w_str}' in line {line_num}")
                        continue
                    if w <= 0:
                        logger.warning(f"Non-positive wavelength '{w_str}' in line {line_num}")
                        continue
                    wavelengths.append(w)
                if wavelengths:
                    line_dict[key] = wavelengths
        self._cache = line_dict
        logger.info(f"Loaded line list with {len(line_dict)} species")
        return line_dict

    def get_lines(self) -> List[SpectralLine]:
        """All catalog lines ordered by wavelength."""
        lines = [
            SpectralLine(label, w)
            for label, wavelengths in self.load_line_list().items()
            for w in wavelengths
        ]
        return sorted(lines, key=lambda l: l.wavelength)

    def get_line_wavelengths(self, label: str) -> List[float]:
        line_list = self.load_line_list()
        if label not in line_list:
            raise LineNotFoundException(label)
        return line_list[label]

    def filter_lines_by_range(self, min_wavelength: float, max_wavelength: float) -> List[SpectralLine]:
        return [l for l in self.get_lines() if min_wavelength <= l.wavelength <= max_wavelength]
