"""
Abstract interface for template sources.
Defines the contract the redshift pipeline relies on.
"""

from abc import ABC, abstractmethod
from typing import List
from specz.domain.models.template import Template

class TemplateSourceInterface(ABC):
    """
    Abstract interface for template sources.

    Implementations should raise TemplateNotFoundException when a template is not found.
    Returned templates are shared and must not be modified.
    """

    @abstractmethod
    def get_templates(self) -> List[Template]:
        """
        Get all available templates, ready for correlation.

        Returns:
            List of prepared templates
        """
        pass

    @abstractmethod
    def get_template(self, template_id: str) -> Template:
        """
        Get a single template.

        Args:
            template_id: Template identifier

        Returns:
            The prepared template

        Raises:
            TemplateNotFoundException: If template is not found
        """
        pass

    def validate_template(self, template_id: str) -> bool:
        """
        Validate if a template exists and is usable.

        Args:
            template_id: Template identifier

        Returns:
            True if template exists and is valid, False otherwise
        """
        try:
            template = self.get_template(template_id)
        except Exception:
            return False
        return len(template.zs) == template.end_z_index - template.start_z_index > 0
