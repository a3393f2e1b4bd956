"""
Fourier transform primitive for real sequences of a fixed length.
"""
from typing import Optional
import numpy as np
from scipy import fft as sp_fft
from specz.config.logging import get_logger
from specz.core.exceptions import InvalidInputError

logger = get_logger(__name__)


class SpectrumTransform:
    """
    Transform-space representation of a real sequence of length `size`.
    Instances are never modified; every operation returns a new transform.
    """

    def __init__(self, coefficients: np.ndarray, size: int):
        self.coefficients = np.array(coefficients, dtype=np.complex128)
        self.size = int(size)
        if len(self.coefficients) != self.size // 2 + 1:
            raise InvalidInputError(
                f"{len(self.coefficients)} coefficients do not describe a sequence of length {self.size}"
            )
        self.coefficients.setflags(write=False)

    @classmethod
    def forward(cls, values, size: Optional[int] = None) -> "SpectrumTransform":
        """
        Transform `values`, zero padding them at the end to `size` samples.

        Raises:
            InvalidInputError: If the values do not fit in `size` samples
        """
        values = np.asarray(values, dtype=np.float64)
        size = len(values) if size is None else int(size)
        if size < 2:
            raise InvalidInputError(f"Transform length must be at least 2, got {size}")
        if len(values) > size:
            raise InvalidInputError(f"Cannot fit {len(values)} samples into a transform of length {size}")
        return cls(sp_fft.rfft(values, n=size), size)

    def conjugate(self) -> "SpectrumTransform":
        return SpectrumTransform(np.conj(self.coefficients), self.size)

    def multiply(self, other: "SpectrumTransform") -> "SpectrumTransform":
        """Element-wise product in transform space."""
        if other.size != self.size:
            raise InvalidInputError(f"Transform lengths differ: {self.size} != {other.size}")
        return SpectrumTransform(self.coefficients * other.coefficients, self.size)

    def inverse(self) -> np.ndarray:
        """Real sequence of length `size`."""
        return sp_fft.irfft(self.coefficients, n=self.size)

    def __len__(self):
        return self.size

    def __repr__(self):
        return f"SpectrumTransform(size={self.size})"
