"""
HEScore: Privacy-Preserving Scoring on BFV Homomorphic Encryption

A requester-side layer for encrypted relevance scoring:
- BFV key generation with profile-bound, staged key files
- Query vector encryption into caller-owned buffers
- Score decryption from base64 transport text
- Host-callable entry points that collapse every fault into a sentinel
"""

__version__ = "1.0.0"

from .bfv import (
    ACTIVE_PROFILE,
    SchemeParameters,
    decode_from_text,
    decrypt_score,
    encode_to_text,
    encrypt_into,
    encrypt_vector,
    generate_key_bundle,
    load_public_key,
    load_secret_key_from_bytes,
    slot_capacity,
)
from .errors import HEScoreError

__all__ = [
    "__version__",
    "ACTIVE_PROFILE",
    "SchemeParameters",
    "slot_capacity",
    "generate_key_bundle",
    "load_public_key",
    "load_secret_key_from_bytes",
    "encrypt_vector",
    "encrypt_into",
    "decrypt_score",
    "encode_to_text",
    "decode_from_text",
    "HEScoreError",
]
