"""
Artifact Envelope Format.

Every key file and every ciphertext produced by hescore is wrapped in a
small fixed-size binary header so that it is self-describing:

    offset  size  field
    0       4     magic "HESC"
    4       2     format version (big-endian)
    6       1     artifact kind
    7       1     reserved (0)
    8       32    SHA-256 fingerprint of the parameter profile
    40      16    bundle id of the key generation run
    56      8     payload length (big-endian)
    64      ...   payload (TenSEAL serialization, SEAL-compressed)

The fingerprint binds an artifact to the profile it was produced under;
loading it under any other profile fails with ``ProfileMismatchError``
instead of producing garbage later. The bundle id ties the four key
files of one generation run together and lets the decryptor reject a
ciphertext encrypted under a different key pair.
"""

import secrets
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from ..errors import DeserializationError, ProfileMismatchError
from .params import SchemeParameters

# Format magic number: "HESC" in ASCII
MAGIC_NUMBER = b"HESC"
FORMAT_VERSION = 1

_HEADER = struct.Struct(">4sHBB32s16sQ")
HEADER_SIZE = _HEADER.size
BUNDLE_ID_SIZE = 16

BytesLike = Union[bytes, bytearray, memoryview]


class ArtifactKind(IntEnum):
    """Kinds of serialized artifacts."""

    SECRET_KEY = 1
    PUBLIC_KEY = 2
    RELIN_KEYS = 3
    GALOIS_KEYS = 4
    CIPHERTEXT = 5

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class Artifact:
    """A parsed envelope: header identity plus opaque payload."""

    kind: ArtifactKind
    fingerprint: bytes
    bundle_id: bytes
    payload: bytes

    @property
    def fingerprint_hex(self) -> str:
        return f"sha256:{self.fingerprint.hex()}"

    @property
    def bundle_id_hex(self) -> str:
        return self.bundle_id.hex()

    def to_bytes(self) -> bytes:
        """Serialize header and payload."""
        header = _HEADER.pack(
            MAGIC_NUMBER,
            FORMAT_VERSION,
            int(self.kind),
            0,
            self.fingerprint,
            self.bundle_id,
            len(self.payload),
        )
        return header + self.payload


def new_bundle_id() -> bytes:
    """Random identifier shared by the artifacts of one key generation run."""
    return secrets.token_bytes(BUNDLE_ID_SIZE)


def seal_artifact(
    kind: ArtifactKind,
    payload: bytes,
    profile: SchemeParameters,
    bundle_id: bytes,
) -> bytes:
    """
    Wrap a payload in an envelope.

    Args:
        kind: Artifact kind
        payload: Serialized TenSEAL object
        profile: Profile the payload was produced under
        bundle_id: Bundle id of the key generation run

    Returns:
        Envelope bytes
    """
    if len(bundle_id) != BUNDLE_ID_SIZE:
        raise ValueError(f"bundle id must be {BUNDLE_ID_SIZE} bytes")
    return Artifact(
        kind=ArtifactKind(kind),
        fingerprint=profile.fingerprint_bytes,
        bundle_id=bytes(bundle_id),
        payload=bytes(payload),
    ).to_bytes()


def open_artifact(
    data: BytesLike,
    expected_kind: Optional[ArtifactKind] = None,
    profile: Optional[SchemeParameters] = None,
) -> Artifact:
    """
    Parse and validate an envelope.

    Args:
        data: Envelope bytes
        expected_kind: Reject any other kind when given
        profile: Reject artifacts with a different fingerprint when given

    Returns:
        Parsed Artifact

    Raises:
        DeserializationError: Malformed, truncated or wrong-kind data
        ProfileMismatchError: Fingerprint differs from ``profile``
    """
    data = bytes(data)
    artifact_label = expected_kind.label if expected_kind is not None else None

    if len(data) < HEADER_SIZE:
        raise DeserializationError(f"artifact truncated ({len(data)} bytes)", artifact=artifact_label)

    magic, version, kind, reserved, fingerprint, bundle_id, length = _HEADER.unpack_from(data)

    if magic != MAGIC_NUMBER:
        raise DeserializationError("invalid magic number", artifact=artifact_label)
    if version != FORMAT_VERSION:
        raise DeserializationError(f"unsupported format version {version}", artifact=artifact_label)
    if reserved != 0:
        raise DeserializationError("reserved header byte is set", artifact=artifact_label)
    try:
        kind = ArtifactKind(kind)
    except ValueError:
        raise DeserializationError(f"unknown artifact kind {kind}", artifact=artifact_label) from None

    payload = data[HEADER_SIZE:]
    if len(payload) != length:
        raise DeserializationError(
            f"payload length mismatch (header {length}, actual {len(payload)})",
            artifact=kind.label,
        )

    if expected_kind is not None and kind != expected_kind:
        raise DeserializationError(f"expected {expected_kind.label}, found {kind.label}", artifact=kind.label)

    artifact = Artifact(kind=kind, fingerprint=fingerprint, bundle_id=bundle_id, payload=payload)

    if profile is not None and fingerprint != profile.fingerprint_bytes:
        raise ProfileMismatchError(profile.fingerprint, artifact.fingerprint_hex, artifact=kind.label)

    return artifact


def reseal(envelope: BytesLike, payload: bytes) -> bytes:
    """
    Replace the payload of an envelope while keeping its header identity.

    Used by a scoring engine that unwraps a query ciphertext, computes on
    it and returns the result under the same profile and bundle.
    """
    artifact = open_artifact(envelope)
    return Artifact(
        kind=artifact.kind,
        fingerprint=artifact.fingerprint,
        bundle_id=artifact.bundle_id,
        payload=bytes(payload),
    ).to_bytes()
