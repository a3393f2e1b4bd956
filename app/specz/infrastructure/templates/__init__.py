"""
Template sources: interface, builder and implementations.
"""

from .template_interface import TemplateSourceInterface
from .template_builder import TemplateBuilder
from .npz_template_source import NpzTemplateSource, InMemoryTemplateSource
from .template_factory import create_template_source

__all__ = [
    'TemplateSourceInterface',
    'TemplateBuilder',
    'NpzTemplateSource',
    'InMemoryTemplateSource',
    'create_template_source'
]
