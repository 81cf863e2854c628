"""
Score decryption (requester side).

The scoring engine returns its result as base64 text of a ciphertext
envelope. The score is the integer in slot 0 of the decoded plaintext;
the remaining slots carry no meaning for the caller.
"""

import logging
from typing import List, Union

import tenseal as ts

from ..errors import DecryptionError, DeserializationError, HEScoreError
from .codec import decode_from_text
from .keys import load_secret_key_from_bytes
from .params import ACTIVE_PROFILE, SchemeParameters
from .serialization import ArtifactKind, BytesLike, open_artifact

logger = logging.getLogger(__name__)


def decrypt_slots(
    encoded_ciphertext: Union[str, bytes],
    secret_key_bytes: BytesLike,
    profile: SchemeParameters = ACTIVE_PROFILE,
) -> List[int]:
    """
    Decrypt a base64-encoded result ciphertext and decode every slot.

    Args:
        encoded_ciphertext: Base64 text of a ciphertext envelope
        secret_key_bytes: Contents of a ``secret_key.k`` file
        profile: Profile both artifacts must carry

    Returns:
        Slot values in order

    Raises:
        DeserializationError: Text or ciphertext malformed, or from another profile
        KeyLoadError: Secret key malformed or from another profile
        DecryptionError: Ciphertext and key come from different bundles, or SEAL fails
    """
    envelope = decode_from_text(encoded_ciphertext)
    artifact = open_artifact(envelope, ArtifactKind.CIPHERTEXT, profile)
    secret_key = load_secret_key_from_bytes(secret_key_bytes, profile)

    if artifact.bundle_id != secret_key.bundle_id:
        raise DecryptionError("ciphertext was not encrypted under this key bundle")

    try:
        encrypted = ts.bfv_vector_from(secret_key.context, artifact.payload)
    except Exception as e:
        raise DeserializationError(str(e), artifact=ArtifactKind.CIPHERTEXT.label) from e

    try:
        return [int(value) for value in encrypted.decrypt()]
    except Exception as e:
        raise DecryptionError(str(e)) from e


def decrypt_score(encoded_ciphertext: Union[str, bytes], secret_key_bytes: BytesLike) -> int:
    """
    Decrypt a result ciphertext and return the score in slot 0.

    Raises:
        HEScoreError: See ``decrypt_slots``; never returns a sentinel
    """
    try:
        slots = decrypt_slots(encoded_ciphertext, secret_key_bytes, ACTIVE_PROFILE)
    except HEScoreError:
        raise
    except Exception as e:
        raise DecryptionError(str(e)) from e

    if not slots:
        raise DecryptionError("decoded plaintext has no slots")

    logger.debug("Decrypted score from result ciphertext")
    return slots[0]
