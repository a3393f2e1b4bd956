from typing import Optional
import numpy as np

class Template:
    """
    A reference spectrum prepared for cross-correlation.

    `transform` is the conjugated transform of the conditioned reference on a
    log-wavelength grid `log_lambda` of the transform's length. `zs` holds one
    redshift per correlation index inside [start_z_index, end_z_index).
    Templates are shared read-only between matches.
    """
    def __init__(
        self,
        id: str,
        transform,
        log_lambda,
        zs,
        start_z_index: int,
        end_z_index: int,
        redshift: float = 0.0,
        name: Optional[str] = None,
        meta: Optional[dict] = None
    ):
        self.id = str(id)
        self.name = name or self.id
        self.transform = transform
        self.log_lambda = np.array(log_lambda, dtype=np.float64)
        self.zs = np.array(zs, dtype=np.float64)
        self.start_z_index = int(start_z_index)
        self.end_z_index = int(end_z_index)
        self.redshift = float(redshift)
        self.meta = meta or {}
        self.log_lambda.setflags(write=False)
        self.zs.setflags(write=False)

    @property
    def gap(self) -> float:
        return float(self.log_lambda[1] - self.log_lambda[0])

    def __len__(self):
        return len(self.log_lambda)

    def __repr__(self):
        return (
            f"Template(id={self.id}, name={self.name}, redshift={self.redshift}, "
            f"n={len(self.log_lambda)}, z_index=[{self.start_z_index}, {self.end_z_index}))"
        )
