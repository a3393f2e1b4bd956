from typing import List
import numpy as np

class Peak:
    """A local extremum of a numeric sequence."""
    __slots__ = ("index", "value")

    def __init__(self, index: int, value: float):
        self.index = int(index)
        self.value = float(value)

    def __iter__(self):
        return iter((self.index, self.value))

    def __eq__(self, other):
        if isinstance(other, Peak):
            return self.index == other.index and self.value == other.value
        return NotImplemented

    def __repr__(self):
        return f"Peak(index={self.index}, value={self.value})"

class CorrelationResult:
    """
    Pruned, normalised cross-correlation of one spectrum against one template.
    """
    def __init__(self, id: str, zs: np.ndarray, xcor: np.ndarray, peaks: List[Peak]):
        self.id = id
        self.zs = zs
        self.xcor = xcor
        self.peaks = peaks

    def __repr__(self):
        return f"CorrelationResult(id={self.id}, n={len(self.xcor)}, peaks={len(self.peaks)})"

class RedshiftMatch:
    """A fitted redshift for one correlation peak of one template."""
    def __init__(self, template_id: str, redshift: float, value: float, index: int = None):
        self.template_id = template_id
        self.redshift = float(redshift)
        self.value = float(value)
        self.index = index

    def __repr__(self):
        return (
            f"RedshiftMatch(template_id={self.template_id}, redshift={self.redshift:.6f}, "
            f"value={self.value:.3f})"
        )
