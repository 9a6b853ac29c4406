#!/usr/bin/env python3
"""
Prediction Client
"""

import asyncio
import logging
from enum import Enum
from typing import List, Optional

import httpx
from pydantic import ValidationError

from ..pipeline import taxonomy
from ..pipeline.mapper import ResultMapper
from ..pipeline.simulator import SimulationGenerator
from ..pipeline.validator import ImageValidator, ProbabilityValidator
from ..utils.exceptions import MalformedResponseException
from ..utils.models import (
    ClassifyResult, PredictionFailure, PredictionOutcome, PredictResponse,
    Provenance, ServerEndpoint
)

HEALTH_TIMEOUT_MILLIS = 5000
DEFAULT_FILENAME = 'image'
UNKNOWN_FAILURE = 'Unknown prediction error'
SIMULATION_NOTICE = 'Using simulation mode (server unavailable).'


class ClientState(Enum):
    """Lifecycle of a classify call."""
    IDLE = "idle"
    DISPATCHING = "dispatching"
    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class PredictionClient:
    """Client for the remote classification service with a simulated fallback."""

    def __init__(self, logger=None, http_client: Optional[httpx.AsyncClient] = None,
                 simulator: Optional[SimulationGenerator] = None,
                 mapper: Optional[ResultMapper] = None,
                 class_ids: Optional[List[str]] = None):
        """Initialize prediction client.

        Args:
            logger: Logger instance
            http_client: Shared async http client; one is opened per call when omitted
            simulator: Generator used when the service cannot be reached
            mapper: Mapper joining probabilities with the taxonomy
            class_ids: Class set simulated on fallback, the full taxonomy by default
        """
        self.logger = logger or logging.getLogger(__name__)
        self.http_client = http_client
        self._owns_client = False
        self.mapper = mapper or ResultMapper()
        self.simulator = simulator or SimulationGenerator(mapper=self.mapper)
        self.validator = ProbabilityValidator()
        self.image_validator = ImageValidator()
        self.class_ids = list(class_ids) if class_ids else taxonomy.class_ids()

        # state is shared by overlapping calls and reads IDLE only when none is in flight
        self.state = ClientState.IDLE
        self.last_state: Optional[ClientState] = None
        self._in_flight = 0

    async def __aenter__(self):
        if self.http_client is None:
            self.http_client = httpx.AsyncClient()
            self._owns_client = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        """Close the http client if this instance created it."""
        if self._owns_client and self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
            self._owns_client = False

    async def classify(self, image_bytes: bytes, endpoint: ServerEndpoint,
                       filename: str = DEFAULT_FILENAME,
                       content_type: Optional[str] = None) -> ClassifyResult:
        """Classify an image with the remote service.

        Args:
            image_bytes: Raw image payload
            endpoint: Service location and deadline, read once for this call
            filename: Name sent with the multipart upload
            content_type: Mime type of the image, sniffed when omitted

        Returns:
            PredictionOutcome (remote or simulated) or PredictionFailure when
            the service reported a logical failure

        Raises:
            MalformedResponseException: If a success payload breaks the contract
        """
        self._in_flight += 1
        self.state = ClientState.DISPATCHING
        self.logger.info(
            f"Dispatching {len(image_bytes)} byte image to {endpoint.predict_url} "
            f"(timeout {endpoint.timeout_millis} ms)"
        )

        try:
            try:
                response = await self._dispatch(image_bytes, endpoint, filename, content_type)
                response.raise_for_status()
            except (asyncio.TimeoutError, httpx.TimeoutException):
                return self._fallback(
                    ClientState.TIMED_OUT,
                    f"Timeout: no response within {endpoint.timeout_millis} ms, "
                    f"the server may be overloaded. {SIMULATION_NOTICE}"
                )
            except httpx.HTTPStatusError as e:
                return self._fallback(
                    ClientState.FAILED,
                    f"Server returned HTTP error {e.response.status_code}. {SIMULATION_NOTICE}"
                )
            except httpx.RequestError as e:
                return self._fallback(
                    ClientState.FAILED,
                    f"Connection error with the server: {type(e).__name__}: {str(e).rstrip('.')}. {SIMULATION_NOTICE}"
                )

            try:
                payload = response.json()
            except ValueError as e:
                return self._fallback(
                    ClientState.FAILED,
                    f"Server returned an invalid response: {e}. {SIMULATION_NOTICE}"
                )

            return self._interpret(payload, endpoint)

        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self.state = ClientState.IDLE

    async def _dispatch(self, image_bytes: bytes, endpoint: ServerEndpoint,
                        filename: str, content_type: Optional[str]) -> httpx.Response:
        """Upload the image, cancelling the request at the endpoint deadline."""
        content_type = (content_type
                        or self.image_validator.detect_content_type(image_bytes, filename)
                        or 'application/octet-stream')
        files = {'image': (filename, image_bytes, content_type)}
        deadline = endpoint.timeout_seconds

        if self.http_client is not None:
            return await asyncio.wait_for(
                self.http_client.post(endpoint.predict_url, files=files, timeout=deadline),
                timeout=deadline
            )

        async with httpx.AsyncClient() as client:
            return await asyncio.wait_for(
                client.post(endpoint.predict_url, files=files, timeout=deadline),
                timeout=deadline
            )

    def _interpret(self, payload, endpoint: ServerEndpoint) -> ClassifyResult:
        """Turn a parsed 2xx body into an outcome."""
        try:
            response = PredictResponse.model_validate(payload)
        except ValidationError as e:
            self.last_state = ClientState.FAILED
            self.logger.error(f"Malformed predict response from {endpoint.predict_url}: {e}")
            raise MalformedResponseException(
                f"Malformed predict response from {endpoint.predict_url}",
                details={'errors': e.errors(include_url=False)}
            ) from e

        if not response.success:
            reason = response.error or UNKNOWN_FAILURE
            self.last_state = ClientState.FAILED
            self.logger.warning(f"Server reported prediction failure: {reason}")
            return PredictionFailure(reason=reason)

        raw = response.raw_predictions()
        check = self.validator.validate(raw)
        advisory = None
        if not check.ok:
            advisory = f"Model probabilities are not properly normalized (sum: {check.sum:.3f})"
            self.logger.warning(f"{advisory}: {'; '.join(check.issues)}")

        candidates = self.mapper.map(raw)
        outcome = self.mapper.build_outcome(
            candidates, Provenance.REMOTE,
            advisory=advisory,
            reported_class_id=response.predictedClass
        )

        self.last_state = ClientState.SUCCEEDED
        self.logger.info(
            f"Prediction received: {outcome.predicted_class_id} ({outcome.confidence:.3f})"
        )
        return outcome

    def _fallback(self, state: ClientState, advisory: str) -> PredictionOutcome:
        """Substitute a simulated outcome after a transport level failure."""
        self.last_state = state
        self.logger.warning(advisory)
        return self.simulator.simulate(self.class_ids, advisory=advisory)

    async def check_health(self, endpoint: ServerEndpoint,
                           timeout_millis: int = HEALTH_TIMEOUT_MILLIS) -> bool:
        """Check if the service answers GET /api/health with a 2xx status."""
        deadline = timeout_millis / 1000.0
        try:
            if self.http_client is not None:
                response = await asyncio.wait_for(
                    self.http_client.get(endpoint.health_url, timeout=deadline), timeout=deadline
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await asyncio.wait_for(
                        client.get(endpoint.health_url, timeout=deadline), timeout=deadline
                    )
            return response.is_success

        except (asyncio.TimeoutError, httpx.HTTPError) as e:
            self.logger.warning(f"Server not available at {endpoint.health_url}: {e}")
            return False
