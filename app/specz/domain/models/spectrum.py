from typing import Optional
import numpy as np

class Spectrum:
    """
    Domain model representing an extracted, wavelength-tagged spectrum.
    Wavelength, intensity and variance are aligned 1:1 and share one length.
    """
    def __init__(
        self,
        wavelength,
        intensity,
        variance=None,
        id: Optional[str] = None,
        name: Optional[str] = None,
        redshift: Optional[float] = None,
        meta: Optional[dict] = None
    ):
        self.id = id
        self.name = name
        self.wavelength = np.asarray(wavelength, dtype=np.float64)
        self.intensity = np.asarray(intensity, dtype=np.float64)
        if variance is None:
            variance = np.ones_like(self.intensity)
        self.variance = np.asarray(variance, dtype=np.float64)
        self.redshift = redshift
        self.meta = meta or {}

    def __len__(self):
        return len(self.intensity)

    def copy(self) -> "Spectrum":
        return Spectrum(
            self.wavelength.copy(),
            self.intensity.copy(),
            self.variance.copy(),
            id=self.id,
            name=self.name,
            redshift=self.redshift,
            meta=dict(self.meta)
        )

    def __repr__(self):
        return (
            f"Spectrum(id={self.id}, name={self.name}, n={len(self.intensity)}, "
            f"redshift={self.redshift})"
        )
