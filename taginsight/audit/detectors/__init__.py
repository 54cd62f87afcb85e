"""Tracking vendor detection and parameter extraction.

This package classifies captured requests by vendor and turns them into flat
parameter maps for rule evaluation.
"""

from .base import (
    # Vendor definitions
    VendorDefinition,
    VendorRegistry,
    VendorRegistryError,
    DEFAULT_VENDORS,
    default_registry,
)

from .detector import VendorDetector

from .extraction import (
    ParameterExtractor,
    extract_event_name,
    extract_pixel_id,
)

from .utils import (
    ParameterParser,
    compile_pattern,
    extract_url_components,
    validate_measurement_id,
    validate_meta_pixel_id,
)

__all__ = [
    # Vendor definitions
    'VendorDefinition',
    'VendorRegistry',
    'VendorRegistryError',
    'DEFAULT_VENDORS',
    'default_registry',

    # Detection
    'VendorDetector',

    # Extraction
    'ParameterExtractor',
    'extract_event_name',
    'extract_pixel_id',

    # Utilities
    'ParameterParser',
    'compile_pattern',
    'extract_url_components',
    'validate_measurement_id',
    'validate_meta_pixel_id',
]
