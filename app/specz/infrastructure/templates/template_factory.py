"""
Factory function for creating template sources from settings.
"""

from typing import Optional
import os
from specz.config.settings import PipelineSettings, get_settings
from specz.infrastructure.templates.npz_template_source import NpzTemplateSource
from specz.infrastructure.templates.template_interface import TemplateSourceInterface
from specz.core.exceptions import ConfigurationException

def create_template_source(template_path: Optional[str] = None, settings: Optional[PipelineSettings] = None) -> TemplateSourceInterface:
    """
    Create the template source for an archive path.

    Args:
        template_path: Path to the .npz archive, settings.template_path if None
        settings: Pipeline settings used to build the templates

    Returns:
        Template source instance

    Raises:
        ConfigurationException: If no archive is configured or it does not exist
    """
    settings = settings or get_settings()
    template_path = template_path or settings.template_path
    if not template_path:
        raise ConfigurationException("No template archive configured (set SPECZ_TEMPLATE_PATH)")
    if not os.path.exists(template_path):
        raise ConfigurationException(f"Template archive not found: {template_path}")
    return NpzTemplateSource(template_path, settings)
