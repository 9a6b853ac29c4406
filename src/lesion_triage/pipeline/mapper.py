"""
Joins raw class probabilities with the taxonomy and ranks them.
"""

import logging
from typing import Iterable, List, Optional

from . import taxonomy
from ..utils.models import PredictionOutcome, Provenance, RankedCandidate, RawPrediction

logger = logging.getLogger(__name__)


class ResultMapper:
    """Maps raw predictions to ranked, display-ready candidates.

    Holds no state besides the read-only taxonomy lookup, so mapping the same
    input twice gives identical output.
    """

    def __init__(self, describe=taxonomy.describe):
        self._describe = describe

    def map(self, raw_predictions: Iterable[RawPrediction]) -> List[RankedCandidate]:
        """Resolve and sort predictions, highest probability first.

        Unknown class ids are kept with a fallback descriptor. Ties keep
        their input order.
        """
        candidates = []
        for raw in raw_predictions:
            descriptor = self._describe(raw.class_id)
            candidates.append(RankedCandidate(
                class_id=raw.class_id,
                probability=raw.probability,
                display_name=descriptor.display_name,
                severity_tier=descriptor.severity_tier,
                color=descriptor.color,
                description=descriptor.description
            ))

        # sorted() is stable
        return sorted(candidates, key=lambda c: c.probability, reverse=True)

    def build_outcome(self, candidates: List[RankedCandidate], provenance: Provenance,
                      advisory: Optional[str] = None,
                      reported_class_id: Optional[str] = None) -> PredictionOutcome:
        """Wrap ranked candidates into an outcome.

        The predicted class is always the first ranked candidate, even when
        the service reported a different one.
        """
        if not candidates:
            raise ValueError("Cannot build an outcome without candidates")

        best = candidates[0]
        if reported_class_id is not None and \
                reported_class_id.strip().lower() != best.class_id.strip().lower():
            logger.warning(
                f"Service reported '{reported_class_id}' but highest probability is "
                f"'{best.class_id}' ({best.probability:.3f}); using '{best.class_id}'"
            )

        return PredictionOutcome(
            predicted_class_id=best.class_id,
            confidence=min(max(best.probability, 0.0), 1.0),
            candidates=candidates,
            provenance=provenance,
            advisory=advisory
        )
