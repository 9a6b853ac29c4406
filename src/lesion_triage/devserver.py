"""
Development stand-in for the remote classification service.

Answers POST /api/predict with a canned distribution and GET /api/health,
so the client can be exercised without a model server.
"""

import logging
from enum import Enum
from typing import Dict, Optional

from fastapi import FastAPI, File, HTTPException, UploadFile

logger = logging.getLogger(__name__)


class ResponseMode(str, Enum):
    """Kind of payload returned by /api/predict"""
    NORMALIZED = "normalized"
    UNNORMALIZED = "unnormalized"
    FAILURE = "failure"
    MALFORMED = "malformed"


DEFAULT_PROBABILITIES = {
    'melanocytic nevi': 0.55,
    'melanoma': 0.20,
    'benign keratosis-like-lesions': 0.10,
    'basal cell carcinoma': 0.06,
    'healthy': 0.04,
    'dermatofibroma': 0.03,
    'vascular lesions': 0.02,
}

# scale applied in unnormalized mode
UNNORMALIZED_SCALE = 1.25


def build_payload(mode: ResponseMode, probabilities: Dict[str, float]) -> Dict:
    """Build the JSON body for a predict request."""
    if mode == ResponseMode.FAILURE:
        return {'success': False, 'error': 'Model is not loaded'}

    if mode == ResponseMode.UNNORMALIZED:
        probabilities = {k: v * UNNORMALIZED_SCALE for k, v in probabilities.items()}

    predicted = max(probabilities, key=probabilities.get)
    entries = [{'className': k, 'probability': v} for k, v in probabilities.items()]

    if mode == ResponseMode.MALFORMED:
        return {'success': True, 'allProbabilities': entries}

    return {
        'success': True,
        'predictedClass': predicted,
        'confidence': probabilities[predicted],
        'allProbabilities': entries,
    }


def create_app(mode: ResponseMode = ResponseMode.NORMALIZED,
               probabilities: Optional[Dict[str, float]] = None) -> FastAPI:
    """Create the stub service app."""
    mode = ResponseMode(mode)
    probabilities = dict(probabilities or DEFAULT_PROBABILITIES)

    app = FastAPI(title="Lesion classification stub", version="1.0.0")

    @app.get("/api/health")
    async def health():
        return {'status': 'ok', 'mode': mode.value}

    @app.post("/api/predict")
    async def predict(image: UploadFile = File(..., description="Image to classify")):
        content = await image.read()
        if not content:
            raise HTTPException(status_code=400, detail="Empty image upload")

        logger.info(f"POST /api/predict: {image.filename} ({len(content)} bytes, mode={mode.value})")
        return build_payload(mode, probabilities)

    return app
