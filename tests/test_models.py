"""Unit tests for the pipeline models."""

import unittest

from pydantic import ValidationError

from lesion_triage.utils.models import (
    PredictionFailure, PredictionOutcome, PredictResponse, Provenance,
    RankedCandidate, ServerEndpoint, SeverityTier, to_percentage
)


def candidate(class_id, probability):
    return RankedCandidate(
        class_id=class_id, probability=probability, display_name=class_id,
        severity_tier=SeverityTier.LOW, color='#000000', description='test'
    )


class TestModels(unittest.TestCase):
    """Test cases for models and helpers."""

    def test_to_percentage(self):
        """Test probabilities and percentages are both handled."""
        self.assertAlmostEqual(to_percentage(0.25), 25.0)
        self.assertEqual(to_percentage(42), 42.0)
        self.assertEqual(to_percentage(1), 100.0)

    def test_endpoint_normalization(self):
        """Test the base URL is trimmed and the deadline converted."""
        endpoint = ServerEndpoint(base_url=' http://host:8080/ ', timeout_millis=250)
        self.assertEqual(endpoint.base_url, 'http://host:8080')
        self.assertEqual(endpoint.predict_url, 'http://host:8080/api/predict')
        self.assertEqual(endpoint.health_url, 'http://host:8080/api/health')
        self.assertEqual(endpoint.timeout_seconds, 0.25)

    def test_endpoint_defaults(self):
        """Test default endpoint values."""
        endpoint = ServerEndpoint()
        self.assertEqual(endpoint.base_url, 'http://localhost:8080')
        self.assertEqual(endpoint.timeout_millis, 30000)

    def test_endpoint_rejects_bad_values(self):
        """Test empty URLs and non-positive deadlines are rejected."""
        with self.assertRaises(ValidationError):
            ServerEndpoint(base_url='  ')
        with self.assertRaises(ValidationError):
            ServerEndpoint(timeout_millis=0)

    def test_outcome_is_immutable(self):
        """Test outcomes cannot be modified after construction."""
        outcome = PredictionOutcome(
            predicted_class_id='a', confidence=0.6,
            candidates=[candidate('a', 0.6), candidate('b', 0.4)],
            provenance=Provenance.REMOTE
        )
        with self.assertRaises(ValidationError):
            outcome.confidence = 0.1
        self.assertTrue(outcome.ok)
        self.assertFalse(outcome.is_simulated)
        self.assertEqual(outcome.primary.class_id, 'a')

    def test_outcome_top(self):
        """Test the top-n view of the candidates."""
        candidates = [candidate(str(i), 1 / 10) for i in range(10)]
        outcome = PredictionOutcome(predicted_class_id='0', confidence=0.1,
                                    candidates=candidates, provenance=Provenance.SIMULATED)
        self.assertEqual(len(outcome.top()), 8)
        self.assertEqual(len(outcome.top(3)), 3)

    def test_outcome_confidence_bounds(self):
        """Test confidence must lie in [0, 1]."""
        with self.assertRaises(ValidationError):
            PredictionOutcome(predicted_class_id='a', confidence=1.5,
                              candidates=[candidate('a', 1.0)], provenance=Provenance.REMOTE)

    def test_failure(self):
        """Test the failure outcome."""
        failure = PredictionFailure(reason='Model not loaded')
        self.assertFalse(failure.ok)
        self.assertEqual(failure.provenance, Provenance.REMOTE)


class TestPredictResponse(unittest.TestCase):
    """Test cases for the predict wire contract."""

    def test_success_payload(self):
        """Test a complete success payload."""
        response = PredictResponse.model_validate({
            'success': True, 'predictedClass': 'melanoma', 'confidence': 0.9,
            'allProbabilities': [{'className': 'melanoma', 'probability': 0.9},
                                 {'className': 'healthy', 'probability': 0.1}],
        })
        raw = response.raw_predictions()
        self.assertEqual([r.class_id for r in raw], ['melanoma', 'healthy'])

    def test_failure_payload_needs_no_fields(self):
        """Test a failure payload only needs the flag."""
        response = PredictResponse.model_validate({'success': False, 'error': 'boom'})
        self.assertEqual(response.error, 'boom')
        self.assertEqual(response.raw_predictions(), [])

    def test_missing_fields(self):
        """Test the required success fields."""
        with self.assertRaises(ValidationError) as ctx:
            PredictResponse.model_validate({'success': True, 'predictedClass': 'melanoma'})
        self.assertIn('confidence', str(ctx.exception))
        self.assertIn('allProbabilities', str(ctx.exception))

    def test_bad_entries(self):
        """Test entries without a class name are rejected."""
        with self.assertRaises(ValidationError):
            PredictResponse.model_validate({
                'success': True, 'predictedClass': 'melanoma', 'confidence': 0.9,
                'allProbabilities': [{'probability': 0.9}],
            })

    def test_missing_success_flag(self):
        """Test the success flag is required."""
        with self.assertRaises(ValidationError):
            PredictResponse.model_validate({'predictedClass': 'melanoma'})

    def test_non_finite_probability(self):
        """Test NaN and infinite probabilities are rejected."""
        for value in (float('nan'), float('inf'), float('-inf')):
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    PredictResponse.model_validate({
                        'success': True, 'predictedClass': 'melanoma', 'confidence': 0.9,
                        'allProbabilities': [{'className': 'melanoma', 'probability': value}],
                    })


if __name__ == '__main__':
    unittest.main()
