"""Pattern detectors for unslop."""

from unslop.detectors.base import Detector
from unslop.detectors.catalog import CatalogError, PatternRule, load_catalog
from unslop.detectors.code import CodeDetector
from unslop.detectors.metadata import MetadataDetector
from unslop.detectors.prose import ProseDetector

__all__ = [
    "CatalogError",
    "CodeDetector",
    "Detector",
    "MetadataDetector",
    "PatternRule",
    "ProseDetector",
    "load_catalog",
]
