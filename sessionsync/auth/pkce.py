"""Verifier, challenge and state generation for the session exchange."""

import base64
import hashlib
import secrets

from sessionsync.auth.models import ChallengeParameters
from sessionsync.core.logging import get_logger


logger = get_logger(__name__)

DEFAULT_VERIFIER_BYTES = 32
DEFAULT_STATE_BYTES = 42


def base64url_encode(data: bytes) -> str:
    """Encode bytes as base64url without padding."""
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def compute_challenge(verifier: str) -> str:
    """SHA-256 of the verifier string, base64url encoded without padding."""
    return base64url_encode(hashlib.sha256(verifier.encode()).digest())


def generate_parameters(
    verifier_bytes: int = DEFAULT_VERIFIER_BYTES,
    state_bytes: int = DEFAULT_STATE_BYTES,
) -> ChallengeParameters:
    """Generate a fresh verifier, its challenge and a separate state value.

    Args:
        verifier_bytes: Number of random bytes behind the verifier
        state_bytes: Number of random bytes behind the state

    Returns:
        ChallengeParameters for a single exchange
    """
    verifier = base64url_encode(secrets.token_bytes(verifier_bytes))
    state = base64url_encode(secrets.token_bytes(state_bytes))
    challenge = compute_challenge(verifier)

    logger.debug(
        "challenge_parameters_generated",
        verifier_length=len(verifier),
        challenge_length=len(challenge),
        state_length=len(state),
    )
    return ChallengeParameters(verifier=verifier, challenge=challenge, state=state)
