"""
BFV cryptographic layer.

Provides the parameter profile, key management, query vector
encryption, score decryption and the transport codec, all built on
TenSEAL (Microsoft SEAL).

Architecture:
    1. Parameter profile - ring degree, modulus chain, batching plaintext modulus
    2. Key manager - four key files per generation run, bound by profile and bundle id
    3. Encryptor / decryptor - vector in, score out
"""

from .codec import decode_from_text, encode_to_text
from .decrypt import decrypt_score, decrypt_slots
from .encrypt import encrypt_into, encrypt_vector, encrypt_with_key, prepare_vector, write_to_buffer
from .keys import (
    KEY_FILENAMES,
    GaloisKeys,
    KeyArtifact,
    KeyBundle,
    LoadedKeyBundle,
    PublicKey,
    RelinKeys,
    SecretKey,
    generate_key_bundle,
    load_galois_keys,
    load_key_bundle,
    load_public_key,
    load_relin_keys,
    load_secret_key,
    load_secret_key_from_bytes,
)
from .params import (
    ACTIVE_PROFILE,
    ACTIVE_RING_DEGREE,
    SUPPORTED_RING_DEGREES,
    SchemeParameters,
    batching_plain_modulus,
    slot_capacity,
)
from .serialization import (
    HEADER_SIZE,
    Artifact,
    ArtifactKind,
    open_artifact,
    reseal,
    seal_artifact,
)

__all__ = [
    # Parameters
    "SchemeParameters",
    "ACTIVE_PROFILE",
    "ACTIVE_RING_DEGREE",
    "SUPPORTED_RING_DEGREES",
    "batching_plain_modulus",
    "slot_capacity",
    # Keys
    "KEY_FILENAMES",
    "KeyArtifact",
    "KeyBundle",
    "LoadedKeyBundle",
    "PublicKey",
    "SecretKey",
    "RelinKeys",
    "GaloisKeys",
    "generate_key_bundle",
    "load_public_key",
    "load_secret_key",
    "load_secret_key_from_bytes",
    "load_relin_keys",
    "load_galois_keys",
    "load_key_bundle",
    # Encryption
    "prepare_vector",
    "encrypt_with_key",
    "encrypt_vector",
    "encrypt_into",
    "write_to_buffer",
    # Decryption
    "decrypt_slots",
    "decrypt_score",
    # Envelopes and transport
    "HEADER_SIZE",
    "Artifact",
    "ArtifactKind",
    "seal_artifact",
    "open_artifact",
    "reseal",
    "encode_to_text",
    "decode_from_text",
]
