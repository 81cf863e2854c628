"""
Membership vector construction.

A vocabulary assigns each known term a fixed slot. A query becomes a
0/1 vector over that vocabulary, ready for ``encrypt_vector``.
"""

from typing import Dict, Iterable, List

from .bfv.params import ACTIVE_PROFILE
from .errors import VectorValidationError


def parse_terms(joined: str) -> List[str]:
    """Split comma-joined analyzer output, dropping empty entries."""
    return [term.strip() for term in joined.split(",") if term.strip()]


class TermVocabulary:
    """Ordered, de-duplicated term to slot mapping."""

    def __init__(self, terms: Iterable[str], slot_capacity: int = ACTIVE_PROFILE.slot_capacity):
        self._index: Dict[str, int] = {}
        for term in terms:
            if term not in self._index:
                self._index[term] = len(self._index)

        if len(self._index) > slot_capacity:
            raise VectorValidationError(
                f"vocabulary of {len(self._index)} terms exceeds slot capacity {slot_capacity}",
                length=len(self._index),
            )
        self.slot_capacity = slot_capacity

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, term: object) -> bool:
        return term in self._index

    @property
    def terms(self) -> List[str]:
        return list(self._index)

    def slot_of(self, term: str) -> int:
        return self._index[term]

    def vectorize(self, terms: Iterable[str]) -> List[int]:
        """
        Flag the slots of the given terms.

        Args:
            terms: Query terms; unknown terms are ignored

        Returns:
            List of 0/1 flags with one entry per vocabulary term
        """
        flags = [0] * len(self._index)
        for term in terms:
            slot = self._index.get(term)
            if slot is not None:
                flags[slot] = 1
        return flags
