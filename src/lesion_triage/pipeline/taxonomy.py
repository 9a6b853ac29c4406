"""
Static taxonomy of the skin conditions recognised by the classification service.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional

from ..utils.models import SeverityTier

UNKNOWN_COLOR = '#6b7280'
UNKNOWN_DESCRIPTION = 'no description available'


@dataclass(frozen=True)
class ClassDescriptor:
    """Display descriptor for one class id."""
    class_id: str
    display_name: str
    severity_tier: SeverityTier
    color: str
    description: str


_DESCRIPTORS = (
    ClassDescriptor('actinic keratoses', 'Actinic Keratosis', SeverityTier.MEDIUM,
                    '#ca8a04', 'Precancerous lesion caused by sun damage'),
    ClassDescriptor('basal cell carcinoma', 'Basal Cell Carcinoma', SeverityTier.HIGH,
                    '#ea580c', 'Most common type of skin cancer'),
    ClassDescriptor('benign keratosis-like-lesions', 'Benign Keratosis-like Lesions', SeverityTier.LOW,
                    '#16a34a', 'Benign lesions that resemble keratosis'),
    ClassDescriptor('chickenpox', 'Chickenpox', SeverityTier.LOW,
                    '#7c3aed', 'Common viral infection in children'),
    ClassDescriptor('cowpox', 'Cowpox', SeverityTier.LOW,
                    '#7c3aed', 'Zoonotic viral infection'),
    ClassDescriptor('dermatofibroma', 'Dermatofibroma', SeverityTier.LOW,
                    '#059669', 'Benign skin tumor'),
    ClassDescriptor('healthy', 'Healthy Skin', SeverityTier.LOW,
                    '#16a34a', 'Skin without visible lesions'),
    ClassDescriptor('hfmd', 'Hand, Foot and Mouth Disease', SeverityTier.LOW,
                    '#7c3aed', 'Common viral infection in children'),
    ClassDescriptor('measles', 'Measles', SeverityTier.MEDIUM,
                    '#d97706', 'Highly contagious viral infection'),
    ClassDescriptor('melanocytic nevi', 'Melanocytic Nevi (Moles)', SeverityTier.LOW,
                    '#16a34a', 'Common benign moles'),
    ClassDescriptor('melanoma', 'Melanoma', SeverityTier.HIGH,
                    '#dc2626', 'Most dangerous form of skin cancer'),
    ClassDescriptor('monkeypox', 'Monkeypox', SeverityTier.MEDIUM,
                    '#d97706', 'Zoonotic viral infection'),
    ClassDescriptor('squamous cell carcinoma', 'Squamous Cell Carcinoma', SeverityTier.HIGH,
                    '#ea580c', 'Second most common type of skin cancer'),
    ClassDescriptor('vascular lesions', 'Vascular Lesions', SeverityTier.LOW,
                    '#7c3aed', 'Lesions related to blood vessels'),
)

# read-only, shared by every client
TAXONOMY: Mapping[str, ClassDescriptor] = MappingProxyType(
    {descriptor.class_id: descriptor for descriptor in _DESCRIPTORS}
)


def _normalize(class_id: str) -> str:
    return class_id.strip().lower()


def lookup(class_id: str) -> Optional[ClassDescriptor]:
    """Find the descriptor for a class id, ignoring case.

    Returns None when the id is not part of the taxonomy.
    """
    return TAXONOMY.get(_normalize(class_id))


def unknown_descriptor(class_id: str) -> ClassDescriptor:
    """Build the descriptor used for a label the taxonomy does not know."""
    return ClassDescriptor(
        class_id=class_id,
        display_name=class_id,
        severity_tier=SeverityTier.LOW,
        color=UNKNOWN_COLOR,
        description=UNKNOWN_DESCRIPTION
    )


def describe(class_id: str) -> ClassDescriptor:
    """Like lookup, but never fails."""
    return lookup(class_id) or unknown_descriptor(class_id)


def class_ids() -> List[str]:
    return list(TAXONOMY.keys())
