"""
hescore Unified Error Taxonomy.

This module provides the error hierarchy for all hescore components.
All errors include:
- Machine-readable error codes
- Structured details (never key material)

Error Code Naming Convention:
- HS_<CATEGORY>_<SPECIFIC>
- Categories: PARAMS, KEY, KEYGEN, DESERIALIZE, PROFILE, BUFFER, VECTOR,
  ENCRYPT, DECRYPT, ANALYZER, CONFIG

Internal components raise these errors. Only the foreign call boundary
(``hescore.bridge``) collapses them into integer status codes.

Security:
- NEVER include secret key bytes, plaintext vectors or full fingerprints
  in error messages or details
- Errors should be safe to log
"""

from typing import Any, Dict, Optional


class HEScoreError(Exception):
    """Base exception for all hescore errors.

    All hescore errors include:
    - code: Machine-readable error code (e.g., HS_KEYGEN_FAILED)
    - message: Human-readable description
    - details: Structured metadata (NEVER include sensitive data)
    """

    def __init__(
        self,
        message: str,
        code: str = "HS_INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


def _truncate_fingerprint(fingerprint: str) -> str:
    return fingerprint[:16] + "..."


# =============================================================================
# Parameter Errors (HS_PARAMS_*)
# =============================================================================


class InvalidParametersError(HEScoreError):
    """Raised when a ring degree or other scheme parameter is unsupported."""

    def __init__(self, reason: str, ring_degree: Optional[int] = None):
        details = {}
        if ring_degree is not None:
            details["ring_degree"] = ring_degree
        super().__init__(
            message=f"Invalid scheme parameters: {reason}",
            code="HS_PARAMS_INVALID",
            details=details,
        )


# =============================================================================
# Key Errors (HS_KEY_*, HS_KEYGEN_*)
# =============================================================================


class KeyGenerationError(HEScoreError):
    """Raised when key generation or committing the key files fails."""

    def __init__(self, reason: str, ring_degree: Optional[int] = None):
        super().__init__(
            message=f"Key generation failed: {reason}",
            code="HS_KEYGEN_FAILED",
            details={"ring_degree": ring_degree} if ring_degree else {},
        )


class KeyLoadError(HEScoreError):
    """Raised when key material is missing, corrupt or mismatched."""

    def __init__(self, reason: str, key_kind: Optional[str] = None):
        super().__init__(
            message=f"Key load failed: {reason}",
            code="HS_KEY_LOAD_FAILED",
            details={"key_kind": key_kind} if key_kind else {},
        )


class KeyFileNotFoundError(KeyLoadError):
    """Raised when an expected key file does not exist."""

    def __init__(self, key_kind: str, filename: str):
        # Only the file name, never the directory, goes into the error
        HEScoreError.__init__(
            self,
            message=f"Key file not found: {filename}",
            code="HS_KEY_NOT_FOUND",
            details={"key_kind": key_kind, "filename": filename},
        )


# =============================================================================
# Deserialization Errors (HS_DESERIALIZE_*, HS_PROFILE_*)
# =============================================================================


class DeserializationError(HEScoreError):
    """Raised when ciphertext, key bytes or base64 text are malformed."""

    def __init__(self, reason: str, artifact: Optional[str] = None):
        super().__init__(
            message=f"Deserialization failed: {reason}",
            code="HS_DESERIALIZE_FAILED",
            details={"artifact": artifact} if artifact else {},
        )


class KeyDeserializationError(KeyLoadError, DeserializationError):
    """Raised when key bytes exist but cannot be parsed."""

    def __init__(self, reason: str, key_kind: Optional[str] = None):
        HEScoreError.__init__(
            self,
            message=f"Key deserialization failed: {reason}",
            code="HS_KEY_DESERIALIZE_FAILED",
            details={"key_kind": key_kind} if key_kind else {},
        )


class ProfileMismatchError(DeserializationError):
    """Raised when an artifact was produced under a different parameter profile."""

    def __init__(self, expected: str, actual: str, artifact: Optional[str] = None):
        details = {
            "expected_fingerprint": _truncate_fingerprint(expected),
            "actual_fingerprint": _truncate_fingerprint(actual),
        }
        if artifact:
            details["artifact"] = artifact
        HEScoreError.__init__(
            self,
            message="Parameter profile mismatch between artifact and active profile",
            code="HS_PROFILE_MISMATCH",
            details=details,
        )


# =============================================================================
# Encryption / Decryption Errors (HS_BUFFER_*, HS_VECTOR_*, HS_ENCRYPT_*, HS_DECRYPT_*)
# =============================================================================


class BufferTooSmallError(HEScoreError):
    """Raised before any copy when a destination buffer cannot hold the output."""

    def __init__(self, required: int, capacity: int):
        super().__init__(
            message=f"Output buffer too small ({capacity} < {required})",
            code="HS_BUFFER_TOO_SMALL",
            details={"required": required, "capacity": capacity},
        )
        self.required = required
        self.capacity = capacity


class VectorValidationError(HEScoreError):
    """Raised when a query vector violates the slot or value constraints."""

    def __init__(self, reason: str, length: Optional[int] = None):
        super().__init__(
            message=f"Invalid query vector: {reason}",
            code="HS_VECTOR_INVALID",
            details={"length": length} if length is not None else {},
        )


class EncryptionError(HEScoreError):
    """Raised when encryption fails for a reason other than keys or capacity."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Encryption failed: {reason}",
            code="HS_ENCRYPT_FAILED",
        )


class DecryptionError(HEScoreError):
    """Raised when decryption or batch decoding fails."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Decryption failed: {reason}",
            code="HS_DECRYPT_FAILED",
        )


# =============================================================================
# Analyzer Errors (HS_ANALYZER_*)
# =============================================================================


class AnalyzerError(HEScoreError):
    """Raised when the keyword analyzer backend fails."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Keyword analyzer failed: {reason}",
            code="HS_ANALYZER_FAILED",
        )


class AnalyzerNotInitializedError(AnalyzerError):
    """Raised when extraction is attempted before initialize()."""

    def __init__(self):
        HEScoreError.__init__(
            self,
            message="Keyword analyzer is not initialized",
            code="HS_ANALYZER_NOT_INITIALIZED",
        )


# =============================================================================
# Configuration Errors (HS_CONFIG_*)
# =============================================================================


class ConfigValidationError(HEScoreError):
    """Raised when configuration validation fails."""

    def __init__(self, config_key: str, reason: str):
        super().__init__(
            message=f"Invalid configuration for {config_key}: {reason}",
            code="HS_CONFIG_INVALID",
            details={"config_key": config_key},
        )


# =============================================================================
# Error Code Registry (for documentation and validation)
# =============================================================================

ERROR_CODES = {
    "HS_PARAMS_INVALID": "Unsupported scheme parameters",
    "HS_KEYGEN_FAILED": "Key generation failed",
    "HS_KEY_LOAD_FAILED": "Key material missing, corrupt or mismatched",
    "HS_KEY_NOT_FOUND": "Key file not found",
    "HS_KEY_DESERIALIZE_FAILED": "Key bytes could not be parsed",
    "HS_DESERIALIZE_FAILED": "Malformed ciphertext, key bytes or base64 text",
    "HS_PROFILE_MISMATCH": "Artifact produced under a different parameter profile",
    "HS_BUFFER_TOO_SMALL": "Destination buffer capacity exceeded",
    "HS_VECTOR_INVALID": "Query vector violates slot or value constraints",
    "HS_ENCRYPT_FAILED": "Encryption failed",
    "HS_DECRYPT_FAILED": "Decryption failed",
    "HS_ANALYZER_FAILED": "Keyword analyzer failed",
    "HS_ANALYZER_NOT_INITIALIZED": "Keyword analyzer not initialized",
    "HS_CONFIG_INVALID": "Configuration validation failed",
    "HS_INTERNAL_ERROR": "Internal error",
}


def validate_error_code(code: str) -> bool:
    """Validate that an error code is registered."""
    return code in ERROR_CODES


__all__ = [
    "HEScoreError",
    "InvalidParametersError",
    "KeyGenerationError",
    "KeyLoadError",
    "KeyFileNotFoundError",
    "DeserializationError",
    "KeyDeserializationError",
    "ProfileMismatchError",
    "BufferTooSmallError",
    "VectorValidationError",
    "EncryptionError",
    "DecryptionError",
    "AnalyzerError",
    "AnalyzerNotInitializedError",
    "ConfigValidationError",
    "ERROR_CODES",
    "validate_error_code",
]
