"""
Tests for membership vector construction.
"""

import pytest

from hescore.errors import VectorValidationError
from hescore.vectors import TermVocabulary, parse_terms


class TestParseTerms:
    def test_splits_and_drops_empty(self):
        assert parse_terms("암호화,서울,AI,") == ["암호화", "서울", "AI"]

    def test_empty(self):
        assert parse_terms("") == []


class TestTermVocabulary:
    """Tests for TermVocabulary."""

    def test_deduplicates_in_order(self):
        vocabulary = TermVocabulary(["b", "a", "b", "c"])

        assert vocabulary.terms == ["b", "a", "c"]
        assert vocabulary.slot_of("c") == 2
        assert len(vocabulary) == 3
        assert "a" in vocabulary

    def test_vectorize(self):
        vocabulary = TermVocabulary(["암호화", "검색", "서울", "AI"])
        assert vocabulary.vectorize(["AI", "암호화", "unknown"]) == [1, 0, 0, 1]

    def test_vectorize_empty_query(self):
        assert TermVocabulary(["a", "b"]).vectorize([]) == [0, 0]

    def test_default_capacity_is_active_profile(self):
        assert TermVocabulary([]).slot_capacity == 8192

    def test_capacity_exceeded(self):
        with pytest.raises(VectorValidationError):
            TermVocabulary(["a", "b", "c"], slot_capacity=2)

    def test_vectorized_query_encrypts(self, key_dir, secret_key_bytes):
        """A vectorized query flows through encryption and decryption."""
        from hescore.bfv.codec import encode_to_text
        from hescore.bfv.decrypt import decrypt_slots
        from hescore.bfv.encrypt import encrypt_vector

        vocabulary = TermVocabulary(parse_terms("암호화,검색,서울"))
        envelope = encrypt_vector(vocabulary.vectorize(["서울"]), key_dir)

        assert decrypt_slots(encode_to_text(envelope), secret_key_bytes)[:3] == [0, 0, 1]
