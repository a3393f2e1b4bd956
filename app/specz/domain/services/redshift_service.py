from typing import Dict, List, Optional
from specz.config.settings import PipelineSettings, get_settings
from specz.config.logging import get_logger
from specz.core.exceptions import AppException, ConfigurationException
from specz.domain.models.correlation import CorrelationResult, RedshiftMatch
from specz.domain.models.spectrum import Spectrum
from specz.domain.services.correlation_service import CorrelationEngine
from specz.domain.services.line_list_service import LineListService
from specz.domain.services.redshift_fitter import RedshiftFitter
from specz.infrastructure.fft.transform import SpectrumTransform
from specz.infrastructure.processing.conditioning import SignalConditioner
from specz.infrastructure.templates import TemplateSourceInterface, create_template_source
from specz.shared.schemas.results import RedshiftEstimateSchema, RedshiftMatchSchema

logger = get_logger(__name__)

class RedshiftService:
    """
    Estimates the redshift of a spectrum: conditioning, transform, correlation
    against every template and sub-pixel fitting of the strongest peaks.
    """
    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        template_source: Optional[TemplateSourceInterface] = None,
        line_list: Optional[LineListService] = None
    ):
        self.settings = settings or get_settings()
        self._template_source = template_source
        lines = line_list.get_lines() if line_list is not None else None
        self.conditioner = SignalConditioner(self.settings, lines)
        self.engine = CorrelationEngine(self.settings)
        self.fitter = RedshiftFitter(self.settings)

    @property
    def template_source(self) -> TemplateSourceInterface:
        if self._template_source is None:
            self._template_source = create_template_source(settings=self.settings)
        return self._template_source

    def transform_spectrum(self, spectrum: Spectrum, quasar: bool = False) -> SpectrumTransform:
        """Condition a copy of the spectrum and transform it at the configured length."""
        _, flux = self.conditioner.condition(spectrum.copy(), quasar=quasar)
        return SpectrumTransform.forward(flux, self.settings.fft_size)

    def correlate(self, spectrum: Spectrum, quasar: bool = False) -> Dict[str, CorrelationResult]:
        """Correlation results for every template, keyed by template id."""
        transform = self.transform_spectrum(spectrum, quasar=quasar)
        return self.engine.match_templates(self.template_source.get_templates(), transform)

    def estimate_redshift(
        self,
        spectrum: Spectrum,
        quasar: bool = False,
        max_matches: Optional[int] = None
    ) -> List[RedshiftMatch]:
        """
        Ranked redshift matches for a spectrum.

        Args:
            spectrum: Raw spectrum, left unmodified
            quasar: Use the quasar wavelength grid
            max_matches: Number of matches, settings.max_matches by default

        Returns:
            Matches ordered by descending correlation peak

        Raises:
            InvalidInputError: If the spectrum arrays are structurally invalid
            ConfigurationException: If no template source is available
        """
        templates = {t.id: t for t in self.template_source.get_templates()}
        if not templates:
            raise ConfigurationException("Template source provided no templates")
        transform = self.transform_spectrum(spectrum, quasar=quasar)
        results = self.engine.match_templates(templates.values(), transform)
        matches = self.fitter.best_matches(results, templates, max_matches)
        if matches:
            logger.info(f"Best redshift for {spectrum!r}: {matches[0]!r}")
        else:
            logger.warning(f"No redshift match for {spectrum!r}")
        return matches

    def estimate_redshift_summary(self, spectrum: Spectrum, quasar: bool = False) -> RedshiftEstimateSchema:
        """
        Serializable outcome of estimate_redshift. Pipeline errors are reported
        in the message instead of being raised.
        """
        try:
            matches = self.estimate_redshift(spectrum, quasar=quasar)
        except AppException as e:
            logger.error(f"Error estimating redshift: {e.message}", exc_info=True)
            return RedshiftEstimateSchema(message=f"Redshift estimation failed: {e.message}")

        if not matches:
            return RedshiftEstimateSchema(message="No correlation peak could be fitted")
        return RedshiftEstimateSchema(
            estimated_redshift=float(matches[0].redshift),
            matches=[RedshiftMatchSchema.from_domain(m) for m in matches],
            message="Redshift estimated successfully"
        )
