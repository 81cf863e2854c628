"""
BFV Key Management Module.

Provides key generation, persistence and loading for the hescore
scoring layer.

Key Types:
    - SecretKey (sk): For decryption, held by the requester only
    - PublicKey (pk): For encrypting query vectors
    - RelinKeys (rlk): For ciphertext-size reduction after multiplication
    - GaloisKeys (galk): For slot rotations inside the scoring engine

Key Flow:
    1. Requester generates (sk, pk, rlk, galk) once per deployment
    2. pk used to encrypt query vectors
    3. rlk and galk distributed to the scoring engine
    4. sk kept in the requester's memory for decrypting scores

Key Storage Structure:
    {key_dir}/
        secret_key.k     # mode 0600
        public_key.k
        relin_keys.k
        gal_keys.k

Each file is an envelope (see ``serialization``) carrying the profile
fingerprint and the bundle id of the generation run. Files are written
to a private staging directory first and then moved into place.
"""

import hashlib
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar, Dict, Iterator, Optional, Tuple, Union

import tenseal as ts

from ..config import settings
from ..errors import (
    DeserializationError,
    HEScoreError,
    KeyDeserializationError,
    KeyFileNotFoundError,
    KeyGenerationError,
    KeyLoadError,
    ProfileMismatchError,
)
from .params import ACTIVE_PROFILE, ACTIVE_RING_DEGREE, SchemeParameters
from .serialization import (
    Artifact,
    ArtifactKind,
    BytesLike,
    new_bundle_id,
    open_artifact,
    seal_artifact,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

KEY_FILENAMES: Dict[ArtifactKind, str] = {
    ArtifactKind.SECRET_KEY: "secret_key.k",
    ArtifactKind.PUBLIC_KEY: "public_key.k",
    ArtifactKind.RELIN_KEYS: "relin_keys.k",
    ArtifactKind.GALOIS_KEYS: "gal_keys.k",
}

# Every file carries the public key so each one loads as a standalone context.
_SERIALIZE_FLAGS: Dict[ArtifactKind, Dict[str, bool]] = {
    ArtifactKind.SECRET_KEY: dict(
        save_public_key=True, save_secret_key=True, save_galois_keys=False, save_relin_keys=False
    ),
    ArtifactKind.PUBLIC_KEY: dict(
        save_public_key=True, save_secret_key=False, save_galois_keys=False, save_relin_keys=False
    ),
    ArtifactKind.RELIN_KEYS: dict(
        save_public_key=True, save_secret_key=False, save_galois_keys=False, save_relin_keys=True
    ),
    ArtifactKind.GALOIS_KEYS: dict(
        save_public_key=True, save_secret_key=False, save_galois_keys=True, save_relin_keys=False
    ),
}

# Secret key is moved into place last
_COMMIT_ORDER = (
    ArtifactKind.PUBLIC_KEY,
    ArtifactKind.RELIN_KEYS,
    ArtifactKind.GALOIS_KEYS,
    ArtifactKind.SECRET_KEY,
)


@dataclass
class KeyArtifact:
    """One serialized key file of a bundle (envelope bytes)."""

    kind: ArtifactKind
    data: bytes

    @property
    def filename(self) -> str:
        return KEY_FILENAMES[self.kind]

    def get_fingerprint(self) -> str:
        """Get artifact fingerprint for identification."""
        return f"sha256:{hashlib.sha256(self.data).hexdigest()[:16]}"


@dataclass
class KeyBundle:
    """
    Complete key bundle produced by one generation run.

    Distributed to different parties after generation:
        - secret_key -> requester only
        - public_key -> whoever encrypts query vectors
        - relin_keys, galois_keys -> scoring engine
    """

    bundle_id: bytes
    profile: SchemeParameters
    secret_key: KeyArtifact
    public_key: KeyArtifact
    relin_keys: KeyArtifact
    galois_keys: KeyArtifact
    directory: Optional[Path] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    def artifacts(self) -> Iterator[KeyArtifact]:
        yield self.secret_key
        yield self.public_key
        yield self.relin_keys
        yield self.galois_keys

    def describe(self) -> Dict[str, Any]:
        """Public description of the bundle (no key material)."""
        return {
            "bundle_id": self.bundle_id.hex(),
            "profile_fingerprint": self.profile.fingerprint,
            "ring_degree": self.profile.ring_degree,
            "public_key_fingerprint": self.public_key.get_fingerprint(),
            "relin_keys_fingerprint": self.relin_keys.get_fingerprint(),
            "galois_keys_fingerprint": self.galois_keys.get_fingerprint(),
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class LoadedKey:
    """Key material deserialized into a TenSEAL context."""

    kind: ClassVar[ArtifactKind]

    profile: SchemeParameters
    bundle_id: bytes
    context: ts.Context


class PublicKey(LoadedKey):
    kind = ArtifactKind.PUBLIC_KEY


class SecretKey(LoadedKey):
    kind = ArtifactKind.SECRET_KEY


class RelinKeys(LoadedKey):
    kind = ArtifactKind.RELIN_KEYS


class GaloisKeys(LoadedKey):
    kind = ArtifactKind.GALOIS_KEYS


@dataclass
class LoadedKeyBundle:
    """All four keys of one directory, verified to share a bundle id."""

    secret_key: SecretKey
    public_key: PublicKey
    relin_keys: RelinKeys
    galois_keys: GaloisKeys

    @property
    def bundle_id(self) -> bytes:
        return self.public_key.bundle_id


def _resolve_directory(directory: Optional[PathLike]) -> Path:
    if directory is None:
        if not settings.KEY_DIR:
            raise KeyLoadError("no key directory given and HS_KEY_DIR is not set")
        directory = settings.KEY_DIR
    return Path(directory)


# =============================================================================
# Generation
# =============================================================================


def generate_key_bundle(
    output_directory: Optional[PathLike] = None,
    ring_degree: int = ACTIVE_RING_DEGREE,
) -> KeyBundle:
    """
    Generate a complete key bundle and persist it as four files.

    Args:
        output_directory: Target directory (created if missing; default HS_KEY_DIR)
        ring_degree: Polynomial ring degree of the profile

    Returns:
        KeyBundle with the serialized artifacts

    Raises:
        InvalidParametersError: Unsupported ring degree (nothing is written)
        KeyGenerationError: Key derivation or file commit failed (nothing is left behind)
    """
    # Validate before touching the file system
    profile = SchemeParameters.from_ring_degree(ring_degree)
    try:
        output = _resolve_directory(output_directory)
    except KeyLoadError as e:
        raise KeyGenerationError(e.message, ring_degree=ring_degree) from e

    try:
        ctx = profile.create_context()
        ctx.generate_galois_keys()
        ctx.generate_relin_keys()

        bundle_id = new_bundle_id()
        artifacts = {
            kind: KeyArtifact(
                kind=kind,
                data=seal_artifact(kind, ctx.serialize(**flags), profile, bundle_id),
            )
            for kind, flags in _SERIALIZE_FLAGS.items()
        }
    except HEScoreError:
        raise
    except Exception as e:
        raise KeyGenerationError(f"key derivation failed: {e}", ring_degree=ring_degree) from e

    bundle = KeyBundle(
        bundle_id=bundle_id,
        profile=profile,
        secret_key=artifacts[ArtifactKind.SECRET_KEY],
        public_key=artifacts[ArtifactKind.PUBLIC_KEY],
        relin_keys=artifacts[ArtifactKind.RELIN_KEYS],
        galois_keys=artifacts[ArtifactKind.GALOIS_KEYS],
        directory=output,
    )

    _commit_bundle(output, bundle)

    logger.info(
        f"Generated key bundle {bundle_id.hex()} (N={profile.ring_degree}): "
        f"pk={bundle.public_key.get_fingerprint()}"
    )
    return bundle


def _commit_bundle(output: Path, bundle: KeyBundle) -> None:
    """Stage all four files privately, then move them into ``output``."""
    try:
        output.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=".keygen-", dir=output))
    except OSError as e:
        raise KeyGenerationError(f"cannot prepare output directory: {e.strerror or e}") from e

    committed = []
    try:
        for artifact in bundle.artifacts():
            path = staging / artifact.filename
            with open(path, "wb") as f:
                f.write(artifact.data)
                f.flush()
                os.fsync(f.fileno())
            if artifact.kind == ArtifactKind.SECRET_KEY:
                os.chmod(path, settings.SECRET_KEY_FILE_MODE)

        for kind in _COMMIT_ORDER:
            name = KEY_FILENAMES[kind]
            os.replace(staging / name, output / name)
            committed.append(output / name)
    except OSError as e:
        for path in committed:
            try:
                path.unlink()
            except OSError:
                logger.warning(f"Could not roll back {path.name} after failed commit")
        raise KeyGenerationError(f"failed to write key files: {e.strerror or e}") from e
    finally:
        shutil.rmtree(staging, ignore_errors=True)


# =============================================================================
# Loading
# =============================================================================


def _read_key_file(directory: Path, kind: ArtifactKind) -> bytes:
    path = directory / KEY_FILENAMES[kind]
    try:
        return path.read_bytes()
    except FileNotFoundError:
        raise KeyFileNotFoundError(kind.label, path.name) from None
    except OSError as e:
        raise KeyLoadError(f"cannot read {path.name}: {e.strerror or e}", key_kind=kind.label) from e


def _open_key(data: BytesLike, kind: ArtifactKind, profile: SchemeParameters) -> Tuple[Artifact, ts.Context]:
    try:
        artifact = open_artifact(data, expected_kind=kind, profile=profile)
    except ProfileMismatchError as e:
        raise KeyDeserializationError(
            "key was generated under a different parameter profile", key_kind=kind.label
        ) from e
    except DeserializationError as e:
        raise KeyDeserializationError(e.message, key_kind=kind.label) from e

    try:
        ctx = ts.context_from(artifact.payload)
    except Exception as e:
        raise KeyDeserializationError(f"payload rejected: {e}", key_kind=kind.label) from e

    expected = {
        ArtifactKind.SECRET_KEY: ctx.has_secret_key,
        ArtifactKind.PUBLIC_KEY: ctx.has_public_key,
        ArtifactKind.RELIN_KEYS: ctx.has_relin_keys,
        ArtifactKind.GALOIS_KEYS: ctx.has_galois_keys,
    }[kind]
    if not expected():
        raise KeyDeserializationError("payload does not contain the expected key material", key_kind=kind.label)

    return artifact, ctx


def load_public_key(directory: Optional[PathLike] = None, profile: SchemeParameters = ACTIVE_PROFILE) -> PublicKey:
    """
    Load ``public_key.k`` from a key directory.

    Raises:
        KeyFileNotFoundError: File absent
        KeyDeserializationError: Malformed bytes or a different profile
    """
    data = _read_key_file(_resolve_directory(directory), ArtifactKind.PUBLIC_KEY)
    artifact, ctx = _open_key(data, ArtifactKind.PUBLIC_KEY, profile)
    return PublicKey(profile=profile, bundle_id=artifact.bundle_id, context=ctx)


def load_secret_key_from_bytes(data: BytesLike, profile: SchemeParameters = ACTIVE_PROFILE) -> SecretKey:
    """
    Load a secret key supplied in memory (the decrypt path never reads it from disk).

    Raises:
        KeyDeserializationError: Malformed bytes or a different profile
    """
    artifact, ctx = _open_key(data, ArtifactKind.SECRET_KEY, profile)
    return SecretKey(profile=profile, bundle_id=artifact.bundle_id, context=ctx)


def load_secret_key(directory: Optional[PathLike] = None, profile: SchemeParameters = ACTIVE_PROFILE) -> SecretKey:
    """Load ``secret_key.k`` from a key directory."""
    data = _read_key_file(_resolve_directory(directory), ArtifactKind.SECRET_KEY)
    return load_secret_key_from_bytes(data, profile)


def load_relin_keys(directory: Optional[PathLike] = None, profile: SchemeParameters = ACTIVE_PROFILE) -> RelinKeys:
    """Load ``relin_keys.k`` from a key directory."""
    data = _read_key_file(_resolve_directory(directory), ArtifactKind.RELIN_KEYS)
    artifact, ctx = _open_key(data, ArtifactKind.RELIN_KEYS, profile)
    return RelinKeys(profile=profile, bundle_id=artifact.bundle_id, context=ctx)


def load_galois_keys(directory: Optional[PathLike] = None, profile: SchemeParameters = ACTIVE_PROFILE) -> GaloisKeys:
    """Load ``gal_keys.k`` from a key directory."""
    data = _read_key_file(_resolve_directory(directory), ArtifactKind.GALOIS_KEYS)
    artifact, ctx = _open_key(data, ArtifactKind.GALOIS_KEYS, profile)
    return GaloisKeys(profile=profile, bundle_id=artifact.bundle_id, context=ctx)


def load_key_bundle(directory: Optional[PathLike] = None, profile: SchemeParameters = ACTIVE_PROFILE) -> LoadedKeyBundle:
    """
    Load all four keys and verify they come from the same generation run.

    Raises:
        KeyLoadError: Any key is missing or malformed, or the files mix bundles
    """
    directory = _resolve_directory(directory)
    bundle = LoadedKeyBundle(
        secret_key=load_secret_key(directory, profile),
        public_key=load_public_key(directory, profile),
        relin_keys=load_relin_keys(directory, profile),
        galois_keys=load_galois_keys(directory, profile),
    )
    bundle_ids = {
        bundle.secret_key.bundle_id,
        bundle.public_key.bundle_id,
        bundle.relin_keys.bundle_id,
        bundle.galois_keys.bundle_id,
    }
    if len(bundle_ids) != 1:
        raise KeyLoadError("key files belong to different generation runs")
    return bundle
