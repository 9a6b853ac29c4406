"""Unit tests for SimulationGenerator."""

import random
import unittest
from unittest.mock import Mock

from lesion_triage.pipeline import taxonomy
from lesion_triage.pipeline.simulator import (
    COMMON_CAP, OTHER_CAP, RARE_CAP, SimulationGenerator
)
from lesion_triage.utils.exceptions import SimulationException
from lesion_triage.utils.models import Provenance


class TestSimulationGenerator(unittest.TestCase):
    """Test cases for the fallback generator."""

    def setUp(self):
        """Set up test fixtures."""
        self.class_ids = taxonomy.class_ids()

    def test_distribution_properties(self):
        """Test non-negativity, unit mass and one candidate per class over many seeds."""
        for seed in range(200):
            generator = SimulationGenerator(rng=random.Random(seed))
            candidates = generator.generate(self.class_ids)

            self.assertEqual(len(candidates), len(self.class_ids))
            self.assertEqual(sorted(c.class_id for c in candidates), sorted(self.class_ids))
            for candidate in candidates:
                self.assertGreaterEqual(candidate.probability, 0.0)
                self.assertLessEqual(candidate.probability, 1.0)
            self.assertAlmostEqual(sum(c.probability for c in candidates), 1.0, delta=1e-6)

            probabilities = [c.probability for c in candidates]
            self.assertEqual(probabilities, sorted(probabilities, reverse=True))

    def test_band_caps(self):
        """Test every draw but the last respects its band cap."""
        generator = SimulationGenerator(rng=random.Random(3))
        draws = generator.draw(self.class_ids)
        for entry in draws[:-1]:
            self.assertLessEqual(entry.probability, generator.band_cap(entry.class_id))

        self.assertEqual(generator.band_cap('healthy'), COMMON_CAP)
        self.assertEqual(generator.band_cap('Melanoma'), RARE_CAP)
        self.assertEqual(generator.band_cap('measles'), OTHER_CAP)

    def test_remaining_mass_cap(self):
        """Test a draw never takes more than 90% of the remaining mass."""
        rng = Mock()
        rng.random.return_value = 0.999999
        generator = SimulationGenerator(rng=rng)

        draws = generator.draw(['healthy', 'melanocytic nevi', 'benign keratosis-like-lesions',
                               'a', 'b', 'c', 'd', 'e', 'f', 'g'])
        remaining = 1.0
        for entry in draws[:-1]:
            self.assertLessEqual(entry.probability, remaining * 0.9 + 1e-12)
            remaining -= entry.probability
        self.assertAlmostEqual(draws[-1].probability, remaining)
        self.assertGreater(draws[-1].probability, 0.0)

    def test_last_class_takes_remainder(self):
        """Test the final class in iteration order receives the leftover mass."""
        generator = SimulationGenerator(rng=random.Random(11))
        draws = generator.draw(self.class_ids)
        self.assertEqual(draws[-1].class_id, self.class_ids[-1])
        self.assertAlmostEqual(draws[-1].probability, 1.0 - sum(d.probability for d in draws[:-1]))

    def test_seeded_generators_agree(self):
        """Test an injected seed makes output reproducible."""
        first = SimulationGenerator(rng=random.Random(7)).generate(self.class_ids)
        second = SimulationGenerator(rng=random.Random(7)).generate(self.class_ids)
        self.assertEqual(first, second)

    def test_default_source_varies(self):
        """Test unseeded generators produce different distributions."""
        first = SimulationGenerator().generate(self.class_ids)
        second = SimulationGenerator().generate(self.class_ids)
        self.assertNotEqual(
            [c.probability for c in first],
            [c.probability for c in second]
        )

    def test_duplicates_collapsed(self):
        """Test each class id appears exactly once."""
        generator = SimulationGenerator(rng=random.Random(1))
        candidates = generator.generate(['melanoma', 'healthy', 'melanoma'])
        self.assertEqual(sorted(c.class_id for c in candidates), ['healthy', 'melanoma'])

    def test_single_class(self):
        """Test a single class receives all the mass."""
        candidates = SimulationGenerator().generate(['melanoma'])
        self.assertEqual(candidates[0].probability, 1.0)

    def test_empty_class_set(self):
        """Test that an empty class set cannot be simulated."""
        with self.assertRaises(SimulationException):
            SimulationGenerator().generate([])

    def test_simulate_outcome(self):
        """Test the simulated outcome is tagged and consistent with the ranking."""
        generator = SimulationGenerator(rng=random.Random(5))
        outcome = generator.simulate(self.class_ids, advisory='server unavailable')

        self.assertEqual(outcome.provenance, Provenance.SIMULATED)
        self.assertTrue(outcome.is_simulated)
        self.assertEqual(outcome.advisory, 'server unavailable')
        self.assertEqual(outcome.predicted_class_id, outcome.candidates[0].class_id)
        self.assertEqual(outcome.confidence, outcome.candidates[0].probability)


if __name__ == '__main__':
    unittest.main()
