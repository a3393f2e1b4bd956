"""
Template sources backed by an .npz archive of reference spectra or by an
in-memory list of prepared templates.
"""

from typing import Dict, List, Optional
import threading
import numpy as np
from specz.config.settings import PipelineSettings, get_settings
from specz.infrastructure.templates.template_interface import TemplateSourceInterface
from specz.infrastructure.templates.template_builder import TemplateBuilder
from specz.domain.models.template import Template
from specz.core.exceptions import TemplateNotFoundException, ConfigurationException
from specz.config.logging import get_logger

logger = get_logger(__name__)

REQUIRED_KEYS = ("id", "wavelength", "intensity")

class NpzTemplateSource(TemplateSourceInterface):
    """
    Loads reference spectra from an .npz archive holding a `templates` object
    array of dicts with keys id, wavelength, intensity and optionally name,
    redshift, z_start, z_end, variance, quasar. Templates are built on first
    use and cached.
    """

    def __init__(self, template_path: str, settings: Optional[PipelineSettings] = None, builder: Optional[TemplateBuilder] = None):
        self.template_path = template_path
        self.settings = settings or get_settings()
        self.builder = builder or TemplateBuilder(self.settings)
        self._templates: Optional[Dict[str, Template]] = None
        self._lock = threading.Lock()
        logger.info(f"NpzTemplateSource initialized with path: {template_path}")

    def get_templates(self) -> List[Template]:
        """Get all templates."""
        return list(self._load_templates().values())

    def get_template(self, template_id: str) -> Template:
        """Get a single template by id."""
        templates = self._load_templates()
        if str(template_id) not in templates:
            raise TemplateNotFoundException(template_id)
        return templates[str(template_id)]

    def _load_templates(self) -> Dict[str, Template]:
        """Load and build templates from the archive once."""
        with self._lock:
            if self._templates is None:
                try:
                    with np.load(self.template_path, allow_pickle=True) as data:
                        entries = list(data['templates'])
                except Exception as e:
                    logger.error(f"Error loading templates from {self.template_path}: {e}")
                    raise ConfigurationException(f"Cannot read templates from {self.template_path}: {e}") from e

                templates = {}
                for entry in entries:
                    if not self._is_valid_entry(entry):
                        logger.warning(f"Skipping malformed template entry in {self.template_path}")
                        continue
                    template = self.builder.build(
                        id=str(entry['id']),
                        wavelength=entry['wavelength'],
                        intensity=entry['intensity'],
                        redshift=float(entry.get('redshift', 0.0)),
                        z_start=entry.get('z_start'),
                        z_end=entry.get('z_end'),
                        variance=entry.get('variance'),
                        name=entry.get('name'),
                        quasar=bool(entry.get('quasar', False))
                    )
                    templates[template.id] = template
                self._templates = templates
                logger.info(f"Templates loaded: {list(templates.keys())}")

        return self._templates

    @staticmethod
    def _is_valid_entry(entry) -> bool:
        """Check that an archive entry carries the required arrays."""
        return (isinstance(entry, dict) and
                all(key in entry for key in REQUIRED_KEYS) and
                len(entry['wavelength']) == len(entry['intensity']) and
                len(entry['wavelength']) >= 2)


class InMemoryTemplateSource(TemplateSourceInterface):
    """Serves templates that were already built."""

    def __init__(self, templates: List[Template]):
        self._templates = {t.id: t for t in templates}

    def get_templates(self) -> List[Template]:
        return list(self._templates.values())

    def get_template(self, template_id: str) -> Template:
        if str(template_id) not in self._templates:
            raise TemplateNotFoundException(template_id)
        return self._templates[str(template_id)]
