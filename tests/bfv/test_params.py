"""
Tests for the BFV parameter profile.
"""

import pytest

from hescore.bfv.params import (
    ACTIVE_PROFILE,
    SUPPORTED_RING_DEGREES,
    SchemeParameters,
    batching_plain_modulus,
    slot_capacity,
)
from hescore.errors import InvalidParametersError


class TestSchemeParameters:
    """Tests for profile derivation."""

    def test_active_profile(self):
        """Active profile uses N=8192 and a 20-bit batching prime."""
        assert ACTIVE_PROFILE.ring_degree == 8192
        assert ACTIVE_PROFILE.plain_modulus == 1032193
        assert ACTIVE_PROFILE.coeff_modulus_bits == 218
        assert ACTIVE_PROFILE.security_level == 128

    def test_slot_capacity_equals_ring_degree(self):
        """BFV batching gives one slot per ring coefficient."""
        assert slot_capacity() == 8192
        assert SchemeParameters.from_ring_degree(4096).slot_capacity == 4096

    @pytest.mark.parametrize("ring_degree", SUPPORTED_RING_DEGREES)
    def test_plain_modulus_supports_batching(self, ring_degree):
        """Plain modulus is a 20-bit prime congruent to 1 mod 2N."""
        params = SchemeParameters.from_ring_degree(ring_degree)
        p = params.plain_modulus

        assert p.bit_length() == 20
        assert p % (2 * ring_degree) == 1
        assert all(p % d for d in range(2, 1025))

    def test_plain_modulus_is_largest_candidate(self):
        """No larger 20-bit candidate of the form k*2N+1 is prime."""
        p = batching_plain_modulus(8192)
        for candidate in range(p + 2 * 8192, 1 << 20, 2 * 8192):
            assert any(candidate % d == 0 for d in range(2, 1025))

    @pytest.mark.parametrize("ring_degree", [0, 1024, 2048, 5000, 65536, -8192])
    def test_unsupported_ring_degree(self, ring_degree):
        """Unsupported degrees are rejected."""
        with pytest.raises(InvalidParametersError) as exc_info:
            SchemeParameters.from_ring_degree(ring_degree)

        assert exc_info.value.code == "HS_PARAMS_INVALID"

    @pytest.mark.parametrize("ring_degree", [True, 8192.0, "8192", None])
    def test_non_integer_ring_degree(self, ring_degree):
        """Only plain integers are accepted."""
        with pytest.raises(InvalidParametersError):
            SchemeParameters.from_ring_degree(ring_degree)

    def test_profile_is_frozen(self):
        """Profiles cannot be mutated."""
        with pytest.raises(Exception):
            ACTIVE_PROFILE.ring_degree = 4096


class TestProfileFingerprint:
    """Tests for profile fingerprints."""

    def test_fingerprint_is_deterministic(self):
        """Same ring degree gives the same fingerprint."""
        a = SchemeParameters.from_ring_degree(8192)
        b = SchemeParameters.from_ring_degree(8192)

        assert a.fingerprint == b.fingerprint
        assert a.fingerprint.startswith("sha256:")
        assert len(a.fingerprint_bytes) == 32

    def test_fingerprints_differ_between_profiles(self):
        """Different ring degrees give different fingerprints."""
        fingerprints = {SchemeParameters.from_ring_degree(n).fingerprint for n in SUPPORTED_RING_DEGREES}
        assert len(fingerprints) == len(SUPPORTED_RING_DEGREES)

    def test_dict_roundtrip(self):
        """from_dict rebuilds the same profile."""
        data = ACTIVE_PROFILE.to_dict()
        assert SchemeParameters.from_dict(data) == ACTIVE_PROFILE

    def test_from_dict_rejects_tampered_description(self):
        """A description that disagrees with the derived profile is rejected."""
        data = ACTIVE_PROFILE.to_dict()
        data["plain_modulus"] = 65537

        with pytest.raises(InvalidParametersError):
            SchemeParameters.from_dict(data)
