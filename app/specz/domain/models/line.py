import math

class SpectralLine:
    """A catalog line: label and vacuum rest wavelength in Angstroms."""
    def __init__(self, label: str, wavelength: float):
        self.label = label
        self.wavelength = float(wavelength)
        self.log_wavelength = math.log10(self.wavelength)

    def __repr__(self):
        return f"SpectralLine(label={self.label}, wavelength={self.wavelength})"
