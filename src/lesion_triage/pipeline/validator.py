"""
Validators for the prediction pipeline.
Checks probability distributions returned by the service and images before upload.
"""

import math
import mimetypes
from typing import Iterable, Optional, Tuple, Union

from ..utils.exceptions import ImageValidationException
from ..utils.models import ImageCheck, RawPrediction, ValidationResult

ProbabilityEntry = Union[RawPrediction, Tuple[str, float]]


class ProbabilityValidator:
    """Checks that a set of class probabilities forms a valid distribution."""

    # allowed deviation of the total mass from 1
    SUM_TOLERANCE = 0.01

    def __init__(self, tolerance: float = SUM_TOLERANCE):
        self.tolerance = tolerance

    def validate(self, candidates: Iterable[ProbabilityEntry]) -> ValidationResult:
        """Validate a distribution without raising.

        Returns the computed sum even when the distribution is rejected so
        callers can report it verbatim.
        """
        issues = []
        total = 0.0

        for class_id, probability in self._entries(candidates):
            if not math.isfinite(probability):
                issues.append(f"Probability for '{class_id}' is not a finite number")
                continue
            if probability < 0:
                issues.append(f"Negative probability for '{class_id}': {probability}")
            total += probability

        if abs(1 - total) > self.tolerance:
            issues.append(f"Probabilities sum to {total:.3f}, expected 1.0 (tolerance {self.tolerance})")

        return ValidationResult(ok=len(issues) == 0, sum=total, issues=issues)

    def _entries(self, candidates: Iterable[ProbabilityEntry]):
        for entry in candidates:
            if isinstance(entry, RawPrediction):
                yield entry.class_id, float(entry.probability)
            else:
                class_id, probability = entry
                yield class_id, float(probability)


class ImageValidator:
    """Pre-upload checks for image payloads."""

    # mime type -> magic byte prefixes
    SIGNATURES = {
        'image/jpeg': (b'\xff\xd8\xff',),
        'image/png': (b'\x89PNG\r\n\x1a\n',),
        'image/gif': (b'GIF87a', b'GIF89a'),
        'image/bmp': (b'BM',),
    }

    ALLOWED_TYPES = ('image/jpeg', 'image/jpg', 'image/png', 'image/gif', 'image/bmp')

    MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB

    def __init__(self, max_size: int = MAX_IMAGE_SIZE):
        self.max_size = max_size

    def validate(self, image_bytes: bytes, filename: Optional[str] = None) -> ImageCheck:
        """Validate image type and size."""
        errors = []
        size = len(image_bytes or b'')

        if size == 0:
            errors.append("Image is empty")
            return ImageCheck(is_valid=False, errors=errors, size=0)

        if size > self.max_size:
            errors.append(f"Image too large: {size} bytes (max: {self.max_size})")

        content_type = self.detect_content_type(image_bytes, filename)
        if content_type not in self.ALLOWED_TYPES:
            errors.append(
                f"Invalid file type: {content_type or 'unknown'}. Allowed: JPG, PNG, GIF, BMP"
            )

        return ImageCheck(
            is_valid=len(errors) == 0,
            errors=errors,
            content_type=content_type,
            size=size
        )

    def ensure_valid(self, image_bytes: bytes, filename: Optional[str] = None) -> ImageCheck:
        """Validate and raise ImageValidationException on rejection."""
        check = self.validate(image_bytes, filename)
        if not check.is_valid:
            raise ImageValidationException(
                '; '.join(check.errors),
                details={'filename': filename, 'size': check.size, 'content_type': check.content_type}
            )
        return check

    def detect_content_type(self, image_bytes: bytes, filename: Optional[str] = None) -> Optional[str]:
        """Sniff the mime type from magic bytes, falling back to the filename."""
        for content_type, prefixes in self.SIGNATURES.items():
            if any(image_bytes.startswith(prefix) for prefix in prefixes):
                return content_type

        if filename:
            guessed, _ = mimetypes.guess_type(filename)
            return guessed
        return None

