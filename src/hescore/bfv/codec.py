"""
Base64 transport codec for ciphertext bytes crossing text-only channels.
"""

import base64
import binascii
from typing import Union

from ..errors import DeserializationError


def encode_to_text(data: Union[bytes, bytearray, memoryview]) -> str:
    """Encode arbitrary bytes (including embedded zero bytes) as standard base64 text."""
    return base64.b64encode(bytes(data)).decode("ascii")


def decode_from_text(text: Union[str, bytes]) -> bytes:
    """
    Decode standard base64 text.

    Decoding is strict: characters outside the base64 alphabet or wrong
    padding are rejected rather than silently skipped. Leading and
    trailing whitespace is ignored.

    Raises:
        DeserializationError: ``text`` is not valid base64
    """
    if isinstance(text, str):
        try:
            text = text.encode("ascii")
        except UnicodeEncodeError:
            raise DeserializationError("base64 text contains non-ASCII characters", artifact="base64") from None
    try:
        return base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DeserializationError(f"invalid base64 text: {e}", artifact="base64") from e
