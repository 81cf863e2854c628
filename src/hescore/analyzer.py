"""
Korean keyword extraction.

Turns free text into the ordered term sequence that the membership
vector builder maps onto slots. Morphological analysis is delegated to
Kiwi (``kiwipiepy``), installed through the ``analyzer`` extra and
imported only when a model is first loaded.
"""

import logging
import threading
from typing import Any, Callable, List, Optional

from .errors import AnalyzerError, AnalyzerNotInitializedError

logger = logging.getLogger(__name__)

# Common noun, proper noun, foreign word
KEYWORD_TAGS = frozenset({"NNG", "NNP", "SL"})
FOREIGN_TAG = "SL"
MIN_NOUN_LENGTH = 2
KEYWORD_SEPARATOR = ","

BackendFactory = Callable[[str], Any]


def _kiwi_backend(model_path: str) -> Any:
    try:
        from kiwipiepy import Kiwi
    except ImportError as e:
        raise AnalyzerError("kiwipiepy is not installed (pip install hescore[analyzer])") from e
    return Kiwi(model_path=model_path)


def _is_keyword(form: str, tag: str) -> bool:
    if tag not in KEYWORD_TAGS:
        return False
    return tag == FOREIGN_TAG or len(form) >= MIN_NOUN_LENGTH


class KeywordAnalyzer:
    """
    Process-wide keyword extractor handle.

    The backend is any object with a ``tokenize(text)`` method returning
    tokens that expose ``form`` and ``tag``; by default a Kiwi instance.

    Usage:
        analyzer = KeywordAnalyzer()
        analyzer.initialize("/opt/kiwi/models/base")
        terms = analyzer.extract_keywords("암호화 검색 API 설계")
    """

    def __init__(self, backend_factory: Optional[BackendFactory] = None):
        self._backend_factory = backend_factory or _kiwi_backend
        self._backend: Optional[Any] = None
        self._lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._backend is not None

    def initialize(self, model_path: str) -> bool:
        """
        Load the analysis model.

        Args:
            model_path: Directory of the Kiwi model files

        Returns:
            True if the analyzer was already initialized, False if this
            call loaded it

        Raises:
            AnalyzerError: The model could not be loaded
        """
        with self._lock:
            if self._backend is not None:
                logger.info("Keyword analyzer already initialized")
                return True

            logger.info(f"Loading keyword analyzer model from {model_path}")
            try:
                self._backend = self._backend_factory(model_path)
            except AnalyzerError:
                raise
            except Exception as e:
                raise AnalyzerError(f"model load failed: {e}") from e
            return False

    def extract_keywords(self, text: str) -> List[str]:
        """Nouns of two or more characters and foreign words, in text order."""
        backend = self._backend
        if backend is None:
            raise AnalyzerNotInitializedError()
        try:
            tokens = backend.tokenize(text)
        except Exception as e:
            raise AnalyzerError(f"analysis failed: {e}") from e
        return [token.form for token in tokens if _is_keyword(token.form, str(token.tag))]

    def extract_joined(self, text: str) -> str:
        return KEYWORD_SEPARATOR.join(self.extract_keywords(text))

    def teardown(self) -> None:
        """Release the backend. Safe to call more than once."""
        with self._lock:
            if self._backend is not None:
                logger.info("Keyword analyzer released")
            self._backend = None
