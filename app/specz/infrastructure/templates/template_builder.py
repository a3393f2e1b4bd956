"""
Builds correlation-ready templates from reference spectra.
"""
from typing import Iterable, Optional
import numpy as np
from specz.config.settings import PipelineSettings, get_settings
from specz.config.logging import get_logger
from specz.core.exceptions import InvalidInputError
from specz.domain.models.spectrum import Spectrum
from specz.domain.models.template import Template
from specz.infrastructure.fft.transform import SpectrumTransform
from specz.infrastructure.processing.conditioning import SignalConditioner
from specz.shared.utils.validators import validate_redshift, validate_redshift_range

logger = get_logger(__name__)


class TemplateBuilder:
    """
    Conditions a reference spectrum exactly as observed spectra are
    conditioned, transforms it and works out which correlation indices
    correspond to the requested redshift range.
    """

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        lines: Optional[Iterable] = None,
        conditioner: Optional[SignalConditioner] = None
    ):
        self.settings = settings or get_settings()
        self.conditioner = conditioner or SignalConditioner(self.settings, lines)

    def redshift_axis(self, gap: float, size: int, redshift: float) -> np.ndarray:
        """Redshift of every index of a correlation curve of length `size` with zero lag at size // 2."""
        return np.power(10.0, (np.arange(size) - size // 2) * gap) * (1 + redshift) - 1

    def build(
        self,
        id: str,
        wavelength,
        intensity,
        redshift: float = 0.0,
        z_start: Optional[float] = None,
        z_end: Optional[float] = None,
        variance=None,
        name: Optional[str] = None,
        quasar: bool = False,
        meta: Optional[dict] = None
    ) -> Template:
        """
        Build a template.

        Args:
            id: Template identifier
            wavelength: Reference wavelengths in Angstroms
            intensity: Reference intensity (not modified)
            redshift: Redshift the reference spectrum sits at
            z_start: Lowest redshift the template may report, unbounded if None
            z_end: Highest redshift the template may report, unbounded if None
            variance: Optional reference variance, unit variance if None
            name: Human readable name
            quasar: Use the quasar wavelength grid

        Returns:
            Prepared Template

        Raises:
            InvalidInputError: If the arrays are invalid or the redshift range is empty
        """
        redshift = validate_redshift(redshift)
        if z_start is not None and z_end is not None:
            validate_redshift_range(z_start, z_end)

        reference = Spectrum(
            np.array(wavelength, dtype=np.float64),
            np.array(intensity, dtype=np.float64),
            None if variance is None else np.array(variance, dtype=np.float64),
            id=str(id),
            name=name,
            redshift=redshift
        )
        _, flux = self.conditioner.condition(reference, quasar=quasar)

        size = self.settings.fft_size
        transform = SpectrumTransform.forward(flux, size).conjugate()
        grid = self.conditioner.resampler.grid(quasar=quasar)
        log_lambda = grid.extended(size)

        zs = self.redshift_axis(grid.gap, size, redshift)
        start_z_index = 0 if z_start is None else int(np.searchsorted(zs, z_start, side="left"))
        end_z_index = size if z_end is None else int(np.searchsorted(zs, z_end, side="right"))
        if end_z_index <= start_z_index:
            raise InvalidInputError(
                f"Template {id} covers no correlation index between z={z_start} and z={z_end}"
            )

        template = Template(
            id=str(id),
            transform=transform,
            log_lambda=log_lambda,
            zs=zs[start_z_index:end_z_index],
            start_z_index=start_z_index,
            end_z_index=end_z_index,
            redshift=redshift,
            name=name,
            meta=meta
        )
        logger.info(f"Built {template!r}")
        return template
