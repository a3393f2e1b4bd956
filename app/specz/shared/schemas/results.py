from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from specz.domain.models.correlation import CorrelationResult, RedshiftMatch

class PeakSchema(BaseModel):
    index: int = Field(..., description="Index into the pruned correlation curve")
    value: float = Field(..., description="Normalised correlation value")

class CorrelationResultSchema(BaseModel):
    """
    Pydantic schema for serializing a correlation result.
    """
    id: str = Field(..., description="Template identifier")
    zs: List[float] = Field(..., description="Redshift of every correlation sample")
    xcor: List[float] = Field(..., description="Pruned, normalised correlation curve")
    peaks: List[PeakSchema] = Field(default_factory=list, description="Correlation maxima")

    @classmethod
    def from_domain(cls, result: CorrelationResult) -> "CorrelationResultSchema":
        return cls(
            id=result.id,
            zs=[float(z) for z in result.zs],
            xcor=[float(v) for v in result.xcor],
            peaks=[PeakSchema(index=p.index, value=p.value) for p in result.peaks]
        )

class RedshiftMatchSchema(BaseModel):
    """
    Pydantic schema for serializing a fitted redshift.
    """
    template_id: str = Field(..., description="Template that produced the match")
    redshift: float = Field(..., description="Fitted redshift")
    value: float = Field(..., description="Normalised correlation peak height")
    index: Optional[int] = Field(None, description="Peak index in the correlation curve")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "template_id": "12",
                "redshift": 0.3412,
                "value": 9.81,
                "index": 1544
            }
        }
    )

    @classmethod
    def from_domain(cls, match: RedshiftMatch) -> "RedshiftMatchSchema":
        return cls(template_id=match.template_id, redshift=match.redshift, value=match.value, index=match.index)

class RedshiftEstimateSchema(BaseModel):
    estimated_redshift: Optional[float] = Field(None, description="Redshift of the best match")
    matches: List[RedshiftMatchSchema] = Field(default_factory=list, description="Ranked matches")
    message: str = Field(..., description="Outcome description")
