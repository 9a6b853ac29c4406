"""Client for a remote skin lesion classification service with a simulated fallback."""

from .client.prediction_client import ClientState, PredictionClient
from .pipeline.mapper import ResultMapper
from .pipeline.simulator import SimulationGenerator
from .pipeline.taxonomy import ClassDescriptor, lookup
from .pipeline.validator import ImageValidator, ProbabilityValidator
from .utils.models import (
    PredictionFailure, PredictionOutcome, Provenance, RankedCandidate,
    RawPrediction, ServerEndpoint, SeverityTier
)

__version__ = "1.0.0"
