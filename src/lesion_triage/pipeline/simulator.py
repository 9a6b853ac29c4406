"""
Substitute results for when the classification service cannot be reached.

The generated distribution is structurally valid (non-negative, sums to 1,
one entry per class) and carries no medical meaning.
"""

import logging
import random
from typing import Iterable, List, Optional

from .mapper import ResultMapper
from ..utils.exceptions import SimulationException
from ..utils.models import PredictionOutcome, Provenance, RankedCandidate, RawPrediction

logger = logging.getLogger(__name__)

COMMON_CLASSES = frozenset({'melanocytic nevi', 'healthy', 'benign keratosis-like-lesions'})
RARE_CLASSES = frozenset({'melanoma', 'squamous cell carcinoma', 'basal cell carcinoma'})

COMMON_CAP = 0.40
RARE_CAP = 0.15
OTHER_CAP = 0.20

# fraction of the remaining mass a single draw may take
REMAINING_CAP = 0.9


class SimulationGenerator:
    """Draws a random distribution over a class set.

    Args:
        rng: Random source. Defaults to a private ``random.Random`` seeded
            from OS entropy; pass a seeded instance for reproducible output.
        mapper: Mapper used to rank and describe the generated classes.
    """

    def __init__(self, rng: Optional[random.Random] = None, mapper: Optional[ResultMapper] = None):
        self.rng = rng or random.Random()
        self.mapper = mapper or ResultMapper()

    @staticmethod
    def band_cap(class_id: str) -> float:
        key = class_id.strip().lower()
        if key in COMMON_CLASSES:
            return COMMON_CAP
        if key in RARE_CLASSES:
            return RARE_CAP
        return OTHER_CAP

    def draw(self, class_ids: Iterable[str]) -> List[RawPrediction]:
        """Draw raw probabilities in class order; the last class takes the rest."""
        ids = list(dict.fromkeys(class_ids))
        if not ids:
            raise SimulationException("Cannot simulate a prediction over an empty class set")

        remaining = 1.0
        raw = []
        for class_id in ids[:-1]:
            share = self.rng.random() * self.band_cap(class_id)
            probability = min(share, remaining * REMAINING_CAP)
            raw.append(RawPrediction(class_id=class_id, probability=probability))
            remaining -= probability
        raw.append(RawPrediction(class_id=ids[-1], probability=max(0.0, remaining)))
        return raw

    def generate(self, class_ids: Iterable[str]) -> List[RankedCandidate]:
        """Generate ranked candidates, one per distinct class id."""
        return self.mapper.map(self.draw(class_ids))

    def simulate(self, class_ids: Iterable[str], advisory: Optional[str] = None) -> PredictionOutcome:
        """Generate a complete outcome tagged as simulated."""
        candidates = self.generate(class_ids)
        outcome = self.mapper.build_outcome(candidates, Provenance.SIMULATED, advisory=advisory)
        logger.info(
            f"Simulated prediction over {len(candidates)} classes: "
            f"{outcome.predicted_class_id} ({outcome.confidence:.3f})"
        )
        return outcome
