"""
Tests for the host-callable entry points.

Every entry point must return a status or sentinel and never raise.
"""

import ctypes
import logging

import pytest

from hescore import bridge
from hescore.bfv.codec import encode_to_text
from hescore.bfv.decrypt import decrypt_slots
from hescore.bfv.serialization import ArtifactKind, open_artifact, reseal


def _result_text(buffer, written):
    envelope = bytes(buffer[:written])
    return encode_to_text(reseal(envelope, open_artifact(envelope, ArtifactKind.CIPHERTEXT).payload))


@pytest.fixture(scope="module")
def encrypted_query(key_dir):
    """(buffer, bytes written) for the query [1, 0, 0, 1]."""
    buffer = bytearray(4 * 1024 * 1024)
    written = bridge.encrypt_vector([1, 0, 0, 1], 4, buffer, len(buffer), str(key_dir))
    assert written > 0
    return buffer, written


class TestGenerateKeys:
    """Tests for bridge.generate_keys."""

    def test_success(self, tmp_path):
        assert bridge.generate_keys(str(tmp_path), 4096) == bridge.SUCCESS
        assert (tmp_path / "secret_key.k").exists()

    @pytest.mark.parametrize("ring_degree", [1000, 0, -1, 2048])
    def test_invalid_degree(self, tmp_path, ring_degree):
        target = tmp_path / "keys"

        assert bridge.generate_keys(str(target), ring_degree) == bridge.FAILURE
        assert not target.exists()

    def test_unwritable_directory(self, tmp_path):
        occupied = tmp_path / "occupied"
        occupied.write_bytes(b"")

        assert bridge.generate_keys(str(occupied), 4096) == bridge.FAILURE


class TestEncryptVector:
    """Tests for bridge.encrypt_vector."""

    def test_uses_only_length_entries(self, key_dir, secret_key_bytes):
        buffer = bytearray(4 * 1024 * 1024)
        written = bridge.encrypt_vector([0, 1, 1, 1], 1, buffer, len(buffer), str(key_dir))

        slots = decrypt_slots(_result_text(buffer, written), secret_key_bytes)
        assert slots[:4] == [0, 0, 0, 0]

    def test_buffer_too_small_reports_required_size(self, key_dir):
        buffer = bytearray(b"\x55" * 32)
        required = ctypes.c_int(0)

        result = bridge.encrypt_vector([1, 0], 2, buffer, len(buffer), str(key_dir), required)

        assert result == bridge.FAILURE
        assert required.value > len(buffer)
        assert buffer == bytearray(b"\x55" * 32)

    def test_buffer_too_small_without_size_slot(self, key_dir):
        assert bridge.encrypt_vector([1], 1, bytearray(8), 8, str(key_dir)) == bridge.FAILURE

    def test_ctypes_buffer(self, key_dir):
        buffer = (ctypes.c_ubyte * (4 * 1024 * 1024))()
        written = bridge.encrypt_vector([1], 1, buffer, len(buffer), str(key_dir))

        assert written > 0
        assert bytes(buffer[:4]) == b"HESC"

    def test_ctypes_vector(self, key_dir):
        vector = (ctypes.c_int * 3)(1, 0, 1)
        buffer = bytearray(4 * 1024 * 1024)

        assert bridge.encrypt_vector(vector, 3, buffer, len(buffer), str(key_dir)) > 0

    @pytest.mark.parametrize("length", [-1, 5, "2", None])
    def test_invalid_length(self, key_dir, length):
        assert bridge.encrypt_vector([1, 0, 0, 1], length, bytearray(16), 16, str(key_dir)) == bridge.FAILURE

    def test_missing_key(self, tmp_path):
        buffer = bytearray(1024)
        assert bridge.encrypt_vector([1], 1, buffer, len(buffer), str(tmp_path)) == bridge.FAILURE
        assert buffer == bytearray(1024)

    def test_oversize_vector(self, key_dir):
        vector = [1] * 8193
        assert bridge.encrypt_vector(vector, len(vector), bytearray(16), 16, str(key_dir)) == bridge.FAILURE

    def test_negative_entry(self, key_dir):
        assert bridge.encrypt_vector([1, -1], 2, bytearray(16), 16, str(key_dir)) == bridge.FAILURE


class TestDecryptScore:
    """Tests for bridge.decrypt_score."""

    def test_roundtrip_score(self, encrypted_query, secret_key_bytes):
        text = _result_text(*encrypted_query)
        assert bridge.decrypt_score(text, secret_key_bytes, len(secret_key_bytes)) == 1

    def test_uses_only_length_bytes(self, encrypted_query, secret_key_bytes):
        padded = bytearray(secret_key_bytes) + b"\x00" * 64
        text = _result_text(*encrypted_query)

        assert bridge.decrypt_score(text, padded, len(secret_key_bytes)) == 1

    def test_ctypes_key_buffer(self, encrypted_query, secret_key_bytes):
        key_buffer = ctypes.create_string_buffer(secret_key_bytes, len(secret_key_bytes))
        text = _result_text(*encrypted_query)

        assert bridge.decrypt_score(text, key_buffer, len(secret_key_bytes)) == 1

    def test_corrupted_text(self, secret_key_bytes):
        assert bridge.decrypt_score("!!!!", secret_key_bytes, len(secret_key_bytes)) == bridge.FAILURE

    def test_truncated_text(self, encrypted_query, secret_key_bytes):
        text = _result_text(*encrypted_query)
        assert bridge.decrypt_score(text[: len(text) // 2], secret_key_bytes, len(secret_key_bytes)) == bridge.FAILURE

    def test_truncated_key(self, encrypted_query, secret_key_bytes):
        text = _result_text(*encrypted_query)
        assert bridge.decrypt_score(text, secret_key_bytes, 100) == bridge.FAILURE

    @pytest.mark.parametrize("delta", [1, 1000])
    def test_length_beyond_buffer(self, encrypted_query, secret_key_bytes, delta):
        text = _result_text(*encrypted_query)
        assert bridge.decrypt_score(text, secret_key_bytes, len(secret_key_bytes) + delta) == bridge.FAILURE

    def test_negative_length(self, encrypted_query, secret_key_bytes):
        text = _result_text(*encrypted_query)
        assert bridge.decrypt_score(text, secret_key_bytes, -1) == bridge.FAILURE

    def test_secret_key_of_other_profile(self, encrypted_query, small_key_dir):
        small_secret = (small_key_dir / "secret_key.k").read_bytes()
        text = _result_text(*encrypted_query)

        assert bridge.decrypt_score(text, small_secret, len(small_secret)) == bridge.FAILURE

    def test_non_buffer_key(self, encrypted_query):
        text = _result_text(*encrypted_query)
        assert bridge.decrypt_score(text, "not-bytes", 9) == bridge.FAILURE


class TestFailureLogging:
    """Collapsed failures are logged with their error code."""

    def test_failure_logged_with_code(self, secret_key_bytes):
        records = []

        class _Collector(logging.Handler):
            def emit(self, record):
                records.append(record)

        bridge_logger = logging.getLogger("hescore.bridge")
        handler = _Collector()
        bridge_logger.addHandler(handler)
        try:
            bridge.decrypt_score("!!!!", secret_key_bytes, len(secret_key_bytes))
        finally:
            bridge_logger.removeHandler(handler)

        assert records
        record = records[-1]
        assert record.levelno == logging.WARNING
        assert record.error_code == "HS_DESERIALIZE_FAILED"
        assert secret_key_bytes.hex()[:32] not in record.getMessage()
