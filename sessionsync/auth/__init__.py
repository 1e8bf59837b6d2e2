"""Session exchange, consent page extraction and credential enrichment."""

from sessionsync.auth.enrichment import EnrichmentFetcher
from sessionsync.auth.extraction import (
    ConsentPageExtractor,
    ScriptPatternExtractor,
    extract_fields,
)
from sessionsync.auth.models import (
    ChallengeParameters,
    ConsentFields,
    CreditInfo,
    EnrichedCredential,
    ExchangeResult,
    UserProfile,
)
from sessionsync.auth.pkce import generate_parameters
from sessionsync.auth.session_exchange import SessionExchangeClient, build_consent_url


__all__ = [
    # Exchange
    "SessionExchangeClient",
    "build_consent_url",
    "generate_parameters",
    # Extraction
    "ConsentPageExtractor",
    "ScriptPatternExtractor",
    "extract_fields",
    # Enrichment
    "EnrichmentFetcher",
    # Models
    "ChallengeParameters",
    "ConsentFields",
    "CreditInfo",
    "EnrichedCredential",
    "ExchangeResult",
    "UserProfile",
]
