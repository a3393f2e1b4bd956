"""
specz: spectroscopic redshift estimation by template cross-correlation.
"""

__version__ = "0.1.0"
