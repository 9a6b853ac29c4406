"""
Custom exceptions for the lesion triage client
"""

from typing import Any, Dict, Optional


class LesionTriageException(Exception):
    """Base exception for lesion triage operations"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize exception.

        Args:
            message: Error description
            details: Additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for display or JSON output."""
        return {
            "error": self.message,
            "error_type": type(self).__name__,
            "details": self.details
        }


class ClassificationException(LesionTriageException):
    """Exception raised while classifying an image"""
    pass


class MalformedResponseException(ClassificationException):
    """Exception raised when a success payload does not match the predict contract"""
    pass


class SimulationException(LesionTriageException):
    """Exception raised when a substitute result cannot be generated"""
    pass


class ConfigurationException(LesionTriageException):
    """Exception raised while loading settings"""
    pass


class ImageValidationException(LesionTriageException):
    """Exception raised when an image is rejected before upload"""
    pass
