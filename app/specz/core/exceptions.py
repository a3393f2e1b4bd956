class AppException(Exception):
    """Base exception for the pipeline."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

# Input and computation exceptions
class InvalidInputError(AppException):
    """Raised for malformed or too short arrays, before any array is mutated."""
    def __init__(self, message: str = "Invalid input."):
        super().__init__(message)

class DegenerateComputationError(AppException):
    """
    Raised by low-level helpers on zero area, zero rms or empty windows.
    Stages catch it, log it and leave their data unchanged.
    """
    def __init__(self, message: str = "Degenerate computation."):
        super().__init__(message)

class NoMatchError(AppException):
    """Raised when a redshift fit cannot locate a maximum inside its search window."""
    def __init__(self, template_id: str = None, message: str = None):
        if message is None:
            message = "No correlation maximum inside the fit window"
            if template_id is not None:
                message += f" for template '{template_id}'"
            message += "."
        self.template_id = template_id
        super().__init__(message)

# Collaborator exceptions
class TemplateNotFoundException(AppException):
    """Raised when a template is not found."""
    def __init__(self, template_id: str):
        super().__init__(f"Template '{template_id}' not found.")

class LineListNotFoundException(AppException):
    """Raised when the line list file is not found."""
    def __init__(self, file_path: str = None):
        message = "Line list file not found."
        if file_path:
            message += f" Expected at: {file_path}"
        super().__init__(message)

class ConfigurationException(AppException):
    """Raised for configuration errors."""
    def __init__(self, message: str = "Configuration error."):
        super().__init__(message)

class LineNotFoundException(AppException):
    """Raised when a line label is not in the line catalog."""
    def __init__(self, label: str):
        super().__init__(f"Line '{label}' not found in line list.")
