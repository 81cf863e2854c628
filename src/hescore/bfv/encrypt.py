"""
Query vector encryption (requester side).

A query vector is zero-padded to the slot capacity of the active
profile, batch-encoded into a single BFV plaintext (one entry per slot,
original order), encrypted under the public key and serialized with
SEAL's default compression. The result is wrapped in a ciphertext
envelope carrying the profile fingerprint and the bundle id of the
public key.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np
import tenseal as ts

from ..errors import BufferTooSmallError, EncryptionError, HEScoreError, VectorValidationError
from .keys import PathLike, PublicKey, load_public_key
from .params import ACTIVE_PROFILE, SchemeParameters
from .serialization import ArtifactKind, seal_artifact

logger = logging.getLogger(__name__)

VectorLike = Union[Sequence[int], np.ndarray]


def prepare_vector(vector: VectorLike, profile: SchemeParameters = ACTIVE_PROFILE) -> np.ndarray:
    """
    Validate a query vector and zero-pad it to the slot capacity.

    Args:
        vector: Non-negative integers, at most ``profile.slot_capacity`` of them
        profile: Parameter profile

    Returns:
        int64 array of length ``profile.slot_capacity``
    """
    try:
        values = np.asarray(vector)
    except (TypeError, ValueError) as e:
        raise VectorValidationError(f"not an integer sequence: {e}") from e

    if values.ndim != 1:
        raise VectorValidationError(f"expected a flat sequence, got {values.ndim} dimensions")
    if values.size and not np.issubdtype(values.dtype, np.integer):
        raise VectorValidationError(f"entries must be integers, got {values.dtype}", length=values.size)
    if values.size > profile.slot_capacity:
        raise VectorValidationError(
            f"length exceeds slot capacity {profile.slot_capacity}",
            length=values.size,
        )
    if values.size and (values.min() < 0 or values.max() >= profile.plain_modulus):
        raise VectorValidationError(
            f"entries must lie in [0, {profile.plain_modulus})",
            length=values.size,
        )

    padded = np.zeros(profile.slot_capacity, dtype=np.int64)
    padded[: values.size] = values
    return padded


def encrypt_with_key(vector: VectorLike, public_key: PublicKey) -> bytes:
    """
    Encrypt a query vector under an already loaded public key.

    Returns:
        Ciphertext envelope bytes
    """
    padded = prepare_vector(vector, public_key.profile)
    try:
        encrypted = ts.bfv_vector(public_key.context, padded.tolist())
        payload = encrypted.serialize()
    except Exception as e:
        raise EncryptionError(str(e)) from e
    return seal_artifact(ArtifactKind.CIPHERTEXT, payload, public_key.profile, public_key.bundle_id)


def encrypt_vector(vector: VectorLike, public_key_directory: Optional[PathLike] = None) -> bytes:
    """
    Encrypt a query vector under the public key stored in a key directory.

    Args:
        vector: Query vector (0/1 membership flags)
        public_key_directory: Directory holding ``public_key.k`` (default HS_KEY_DIR)

    Returns:
        Ciphertext envelope bytes

    Raises:
        KeyLoadError: Public key missing, unreadable or from another profile
        VectorValidationError: Vector too long or out of range
        EncryptionError: Any other encryption fault
    """
    public_key = load_public_key(public_key_directory, ACTIVE_PROFILE)
    try:
        return encrypt_with_key(vector, public_key)
    except HEScoreError:
        raise
    except Exception as e:
        raise EncryptionError(str(e)) from e


def write_to_buffer(data: bytes, output_buffer, capacity: int) -> int:
    """
    Copy ``data`` into a caller-owned buffer, all or nothing.

    The effective capacity is the smaller of the declared ``capacity`` and
    the real size of ``output_buffer``.

    Returns:
        Number of bytes written (always ``len(data)``)

    Raises:
        BufferTooSmallError: ``data`` does not fit (buffer untouched)
    """
    view = memoryview(output_buffer).cast("B")
    if view.readonly:
        raise EncryptionError("output buffer is read-only")
    effective = max(0, min(int(capacity), view.nbytes))
    if len(data) > effective:
        raise BufferTooSmallError(required=len(data), capacity=effective)
    view[: len(data)] = data
    return len(data)


def encrypt_into(
    vector: VectorLike,
    public_key_directory: Optional[PathLike],
    output_buffer,
    capacity: int,
) -> int:
    """
    Encrypt a query vector and write the envelope into a caller-owned buffer.

    Nothing is written to ``output_buffer`` unless the whole ciphertext fits.

    Returns:
        Exact number of bytes written

    Raises:
        BufferTooSmallError: Carries the required size in ``.required``
        KeyLoadError, VectorValidationError, EncryptionError: As ``encrypt_vector``
    """
    data = encrypt_vector(vector, public_key_directory)
    written = write_to_buffer(data, output_buffer, capacity)
    logger.debug(f"Encrypted query vector into buffer ({written} bytes)")
    return written
