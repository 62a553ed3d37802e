from .credential_store import (
    SECRET_REFERENCE_PATTERN,
    CredentialError,
    CredentialStore,
    env_name_for_key,
)

__all__ = [
    "CredentialError",
    "CredentialStore",
    "SECRET_REFERENCE_PATTERN",
    "env_name_for_key",
]
