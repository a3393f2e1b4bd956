import numpy as np

def linear_scale(start: float, end: float, num: int) -> np.ndarray:
    """Return `num` equispaced points from `start` to `end`, both ends included."""
    if num == 1:
        return np.array([float(start)])
    w1 = np.arange(num) / (num - 1)
    return start * (1 - w1) + end * w1

def linear_scale_factor(start: float, end: float, redshift: float, num: int) -> np.ndarray:
    """Linear scale between redshifted start and end values."""
    return linear_scale(start * (1 + redshift), end * (1 + redshift), num)

class LogGrid:
    """
    Equispaced grid in log10(wavelength) space.
    """
    def __init__(self, start_power: float, end_power: float, num: int):
        self.start_power = float(start_power)
        self.end_power = float(end_power)
        self.num = int(num)

    @property
    def log_lambda(self) -> np.ndarray:
        return linear_scale(self.start_power, self.end_power, self.num)

    @property
    def wavelength(self) -> np.ndarray:
        return np.power(10.0, self.log_lambda)

    @property
    def gap(self) -> float:
        if self.num < 2:
            return 0.0
        return (self.end_power - self.start_power) / (self.num - 1)

    def extended(self, num: int) -> np.ndarray:
        """The grid continued past its end with the same spacing, `num` points long."""
        return self.start_power + np.arange(num) * self.gap

    def __repr__(self):
        return f"LogGrid(start_power={self.start_power}, end_power={self.end_power}, num={self.num})"
