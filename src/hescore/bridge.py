"""
Host-callable entry points.

These three functions are the surface exposed to a non-Python host
(through an embedding layer or ctypes callbacks). They never raise:
every fault is logged with its error code and collapsed into the
``FAILURE`` sentinel. Inside the library all errors stay structured
``HEScoreError`` exceptions.

Usage:
    from hescore import bridge

    status = bridge.generate_keys("/var/lib/hescore/keys", 8192)
    written = bridge.encrypt_vector(flags, len(flags), buf, len(buf), "/var/lib/hescore/keys")
    score = bridge.decrypt_score(result_b64, sk_bytes, len(sk_bytes))
"""

import logging
from typing import Any, Optional, Union

from .bfv.decrypt import decrypt_score as _decrypt_score
from .bfv.encrypt import encrypt_into
from .bfv.keys import generate_key_bundle
from .errors import BufferTooSmallError, HEScoreError
from .logging import LogContext

logger = logging.getLogger(__name__)

SUCCESS = 0
FAILURE = -1


def _log_failure(operation: str, error: Exception) -> None:
    if isinstance(error, HEScoreError):
        logger.warning(
            f"{operation} failed: {error}",
            extra={"error_code": error.code},
        )
    else:
        logger.warning(
            f"{operation} failed with unexpected {type(error).__name__}",
            extra={"error_code": "HS_INTERNAL_ERROR"},
        )


def _prefix_length(buffer_length: int, length: Any) -> int:
    if isinstance(length, bool) or not isinstance(length, int):
        raise ValueError("length must be an integer")
    if length < 0 or length > buffer_length:
        raise ValueError(f"length {length} outside [0, {buffer_length}]")
    return length


def generate_keys(output_directory: str, ring_degree: int) -> int:
    """
    Generate a key bundle into ``output_directory``.

    Returns:
        SUCCESS, or FAILURE when the ring degree is unsupported or any
        file could not be written (nothing is left behind in that case)
    """
    with LogContext(operation="generate_keys"):
        try:
            generate_key_bundle(output_directory, ring_degree)
            return SUCCESS
        except Exception as e:
            _log_failure("generate_keys", e)
            return FAILURE


def decrypt_score(base64_ciphertext: Union[str, bytes], secret_key_bytes: Any, length: int) -> int:
    """
    Decrypt a base64 result ciphertext with an in-memory secret key.

    Args:
        base64_ciphertext: Base64 text of the result envelope
        secret_key_bytes: Buffer holding the secret key file contents
        length: Number of leading bytes of ``secret_key_bytes`` to use

    Returns:
        The score in slot 0, or FAILURE
    """
    with LogContext(operation="decrypt_score"):
        try:
            key_view = memoryview(secret_key_bytes).cast("B")
            used = _prefix_length(key_view.nbytes, length)
            return _decrypt_score(base64_ciphertext, key_view[:used].tobytes())
        except Exception as e:
            _log_failure("decrypt_score", e)
            return FAILURE


def encrypt_vector(
    vector: Any,
    length: int,
    output_buffer: Any,
    buffer_capacity: int,
    public_key_directory: str,
    required_size: Optional[Any] = None,
) -> int:
    """
    Encrypt the first ``length`` entries of ``vector`` into ``output_buffer``.

    Args:
        vector: Integer sequence (list, numpy array or ctypes array)
        length: Number of leading entries to encrypt
        output_buffer: Writable buffer (bytearray, memoryview or ctypes array)
        buffer_capacity: Declared capacity of ``output_buffer`` in bytes
        public_key_directory: Directory holding ``public_key.k``
        required_size: Optional object with a writable ``.value`` (e.g.
            ``ctypes.c_int``) receiving the needed size when the buffer is
            too small

    Returns:
        Bytes written, or FAILURE (the buffer is untouched on failure)
    """
    with LogContext(operation="encrypt_vector"):
        try:
            used = _prefix_length(len(vector), length)
            return encrypt_into(list(vector[:used]), public_key_directory, output_buffer, buffer_capacity)
        except BufferTooSmallError as e:
            if required_size is not None:
                required_size.value = e.required
            _log_failure("encrypt_vector", e)
            return FAILURE
        except Exception as e:
            _log_failure("encrypt_vector", e)
            return FAILURE
