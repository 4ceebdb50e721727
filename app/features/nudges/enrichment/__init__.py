"""
Optional AI enrichment: Fit Normalizer, Tone Polisher and their cache.
"""

from .cache import EnrichmentCache, fit_cache_key, tone_cache_key
from .providers import (
    EnrichmentProvider,
    NullEnrichmentProvider,
    OpenAIEnrichmentProvider,
    get_enrichment_provider,
)
from .schemas import validate_fit_payload, validate_polish_payload

__all__ = [
    "EnrichmentCache",
    "EnrichmentProvider",
    "NullEnrichmentProvider",
    "OpenAIEnrichmentProvider",
    "fit_cache_key",
    "get_enrichment_provider",
    "tone_cache_key",
    "validate_fit_payload",
    "validate_polish_payload",
]
