"""
BFV Scheme Parameter Profile.

Defines the single source of truth for the cryptographic parameters
shared by key generation, encryption and decryption. A profile is the
tuple (ring degree, modulus chain, plaintext modulus); two parties can
only exchange keys or ciphertexts when their profiles are identical,
which is checked through the profile fingerprint embedded in every
serialized artifact.

The modulus chain is SEAL's ``CoeffModulus::BFVDefault`` for the ring
degree (128-bit security). The plaintext modulus is the largest prime of
``PLAIN_MODULUS_BITS`` bits congruent to 1 modulo ``2 * ring_degree``,
the same value SEAL's ``PlainModulus::Batching`` selects, so that the
plaintext supports SIMD batching with one slot per ring coefficient.
"""

import hashlib
import json
import logging
from dataclasses import dataclass
from math import isqrt
from typing import Any, Dict

import tenseal as ts

from ..errors import InvalidParametersError

logger = logging.getLogger(__name__)

PROFILE_VERSION = 1
PLAIN_MODULUS_BITS = 20
SECURITY_LEVEL = 128

# Total coefficient modulus bits of CoeffModulus::BFVDefault at 128-bit security.
# 1024 and 2048 are omitted: their single-prime chains cannot hold
# relinearization or rotation keys.
BFV_DEFAULT_COEFF_MODULUS_BITS: Dict[int, int] = {
    4096: 109,
    8192: 218,
    16384: 438,
    32768: 881,
}

SUPPORTED_RING_DEGREES = tuple(sorted(BFV_DEFAULT_COEFF_MODULUS_BITS))

ACTIVE_RING_DEGREE = 8192


def _is_prime(value: int) -> bool:
    if value < 2:
        return False
    if value % 2 == 0:
        return value == 2
    for divisor in range(3, isqrt(value) + 1, 2):
        if value % divisor == 0:
            return False
    return True


def batching_plain_modulus(ring_degree: int, bits: int = PLAIN_MODULUS_BITS) -> int:
    """
    Find the batching-capable plaintext modulus for a ring degree.

    Candidates have the form k * 2N + 1 and are scanned downwards from
    the top of the ``bits``-bit range.

    Args:
        ring_degree: Polynomial ring degree N
        bits: Exact bit length of the modulus

    Returns:
        Largest prime p < 2**bits with p = 1 (mod 2N)
    """
    step = 2 * ring_degree
    candidate = (1 << bits) - step + 1
    while candidate > (1 << (bits - 1)):
        if _is_prime(candidate):
            return candidate
        candidate -= step
    raise InvalidParametersError(
        f"no {bits}-bit batching prime exists for this ring degree",
        ring_degree=ring_degree,
    )


@dataclass(frozen=True)
class SchemeParameters:
    """
    Immutable BFV parameter profile.

    Use ``SchemeParameters.from_ring_degree`` rather than the constructor
    so the modulus chain and plaintext modulus are always derived the
    same way.
    """

    ring_degree: int
    coeff_modulus_bits: int
    plain_modulus: int
    plain_modulus_bits: int = PLAIN_MODULUS_BITS
    security_level: int = SECURITY_LEVEL
    scheme: str = "bfv"
    version: int = PROFILE_VERSION

    @classmethod
    def from_ring_degree(cls, ring_degree: int) -> "SchemeParameters":
        """Build the profile for a supported ring degree."""
        if isinstance(ring_degree, bool) or not isinstance(ring_degree, int):
            raise InvalidParametersError("ring degree must be an integer")
        if ring_degree not in BFV_DEFAULT_COEFF_MODULUS_BITS:
            raise InvalidParametersError(
                f"ring degree must be one of {list(SUPPORTED_RING_DEGREES)}",
                ring_degree=ring_degree,
            )
        return cls(
            ring_degree=ring_degree,
            coeff_modulus_bits=BFV_DEFAULT_COEFF_MODULUS_BITS[ring_degree],
            plain_modulus=batching_plain_modulus(ring_degree),
        )

    @property
    def slot_capacity(self) -> int:
        """Number of batching slots; one per ring coefficient for BFV."""
        return self.ring_degree

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "scheme": self.scheme,
            "version": self.version,
            "ring_degree": self.ring_degree,
            "coeff_modulus": "bfv-default",
            "coeff_modulus_bits": self.coeff_modulus_bits,
            "plain_modulus": self.plain_modulus,
            "plain_modulus_bits": self.plain_modulus_bits,
            "security_level": self.security_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchemeParameters":
        """Rebuild a profile and verify it matches what the ring degree derives."""
        params = cls.from_ring_degree(data["ring_degree"])
        if params.to_dict() != data:
            raise InvalidParametersError(
                "profile description does not match the derived profile",
                ring_degree=data.get("ring_degree"),
            )
        return params

    @property
    def fingerprint_bytes(self) -> bytes:
        """Raw SHA-256 digest of the canonical profile description."""
        canonical = json.dumps(self.to_dict(), sort_keys=True).encode()
        return hashlib.sha256(canonical).digest()

    @property
    def fingerprint(self) -> str:
        """Printable profile fingerprint."""
        return f"sha256:{self.fingerprint_bytes.hex()}"

    def create_context(self) -> "ts.Context":
        """
        Construct a fresh TenSEAL BFV context holding a new secret key.

        An empty ``coeff_mod_bit_sizes`` makes TenSEAL select
        ``CoeffModulus::BFVDefault`` for the ring degree.
        """
        logger.debug(f"Creating BFV context for profile {self.fingerprint[:23]}")
        return ts.context(
            ts.SCHEME_TYPE.BFV,
            poly_modulus_degree=self.ring_degree,
            plain_modulus=self.plain_modulus,
            coeff_mod_bit_sizes=[],
        )


ACTIVE_PROFILE = SchemeParameters.from_ring_degree(ACTIVE_RING_DEGREE)


def slot_capacity(profile: SchemeParameters = ACTIVE_PROFILE) -> int:
    """Slot capacity of a profile (defaults to the active profile)."""
    return profile.slot_capacity
