"""
Pydantic models for the prediction pipeline and the predict wire contract
"""

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SeverityTier(str, Enum):
    """Coarse risk tier used to prioritise a class for display"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Provenance(str, Enum):
    """Where a result came from"""
    REMOTE = "remote"
    SIMULATED = "simulated"


def to_percentage(value: float) -> float:
    """Convert a probability to a percentage.

    Values above 1 are assumed to already be percentages.
    """
    numeric = float(value)
    return numeric if numeric > 1 else numeric * 100


class ServerEndpoint(BaseModel):
    """Remote classification service location and deadline"""
    base_url: str = Field(default="http://localhost:8080", description="Service base URL")
    timeout_millis: int = Field(default=30000, gt=0, description="Hard deadline for one predict request")

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v):
        if not v or not v.strip():
            raise ValueError('Server URL cannot be empty')
        return v.strip().rstrip('/')

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_millis / 1000.0

    @property
    def predict_url(self) -> str:
        return f"{self.base_url}/api/predict"

    @property
    def health_url(self) -> str:
        return f"{self.base_url}/api/health"


class RawPrediction(BaseModel):
    """One class probability as reported by the service or the simulator"""
    model_config = ConfigDict(frozen=True)

    class_id: str = Field(..., description="Class label as produced upstream")
    probability: float = Field(..., description="Probability mass for the class")


class RankedCandidate(BaseModel):
    """A raw prediction joined with its display descriptor"""
    model_config = ConfigDict(frozen=True)

    class_id: str = Field(..., description="Class label as produced upstream")
    probability: float = Field(..., description="Probability mass for the class")
    display_name: str = Field(..., description="Human readable class name")
    severity_tier: SeverityTier = Field(..., description="Risk tier of the class")
    color: str = Field(..., description="Color token used when rendering the class")
    description: str = Field(..., description="Short description of the condition")

    @property
    def percentage(self) -> float:
        return to_percentage(self.probability)


class PredictionOutcome(BaseModel):
    """Complete, immutable result of one classify call"""
    model_config = ConfigDict(frozen=True)

    predicted_class_id: str = Field(..., description="Class id of the highest ranked candidate")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Probability of the predicted class")
    candidates: List[RankedCandidate] = Field(..., min_length=1, description="Candidates by descending probability")
    provenance: Provenance = Field(..., description="Remote inference or local simulation")
    advisory: Optional[str] = Field(None, description="Warning about degraded accuracy")

    @property
    def ok(self) -> bool:
        return True

    @property
    def is_simulated(self) -> bool:
        return self.provenance == Provenance.SIMULATED

    @property
    def primary(self) -> RankedCandidate:
        return self.candidates[0]

    def top(self, n: int = 8) -> List[RankedCandidate]:
        """Return the n most probable candidates."""
        return list(self.candidates[:n])


class PredictionFailure(BaseModel):
    """Logical failure reported by a reachable service"""
    model_config = ConfigDict(frozen=True)

    reason: str = Field(..., description="Failure message reported by the service")
    provenance: Provenance = Field(default=Provenance.REMOTE, description="Always remote")

    @property
    def ok(self) -> bool:
        return False


ClassifyResult = Union[PredictionOutcome, PredictionFailure]


class ValidationResult(BaseModel):
    """Result of a probability distribution check"""
    ok: bool = Field(..., description="Whether the distribution is valid")
    sum: float = Field(..., description="Computed probability mass")
    issues: List[str] = Field(default_factory=list, description="Problems found")


class ImageCheck(BaseModel):
    """Result of the upload pre-check"""
    is_valid: bool = Field(..., description="Whether the image may be uploaded")
    errors: List[str] = Field(default_factory=list, description="Validation errors")
    content_type: Optional[str] = Field(None, description="Detected mime type")
    size: int = Field(default=0, description="Payload size in bytes")


class WireProbability(BaseModel):
    """One entry of allProbabilities in the predict response"""
    className: str
    probability: float = Field(..., allow_inf_nan=False)


class PredictResponse(BaseModel):
    """Response body of POST /api/predict"""
    success: bool
    predictedClass: Optional[str] = None
    confidence: Optional[float] = Field(None, allow_inf_nan=False)
    allProbabilities: Optional[List[WireProbability]] = None
    error: Optional[str] = None

    @model_validator(mode='after')
    def check_success_fields(self):
        if not self.success:
            return self
        missing = [name for name in ('predictedClass', 'confidence', 'allProbabilities')
                   if getattr(self, name) is None]
        if missing:
            raise ValueError(f"Success payload is missing required fields: {', '.join(missing)}")
        if not self.allProbabilities:
            raise ValueError("Success payload has an empty allProbabilities list")
        return self

    def raw_predictions(self) -> List[RawPrediction]:
        return [RawPrediction(class_id=item.className, probability=item.probability)
                for item in self.allProbabilities or []]
