"""
Credential store for shared webhook secrets kept Fernet-encrypted in memory.

Secrets are addressed by a credentials id (the same id a site config refers
to).  Plain secrets only leave the store through :meth:`CredentialStore.get_secret`.

Usage::

    store = CredentialStore()
    store.put("jira-prod", "s3cr3t")
    secret = store.get_secret("jira-prod")
"""

import logging
import threading
from typing import Dict, List, Mapping, Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class CredentialStore:
    """Thread-safe credentials-id -> secret lookup.

    ``encryption_key`` is a urlsafe-base64 32-byte Fernet key.  When omitted a
    random key is generated, so stored secrets do not outlive the instance.
    """

    def __init__(self, encryption_key: Optional[bytes] = None) -> None:
        self._fernet = Fernet(encryption_key or Fernet.generate_key())
        self._lock = threading.Lock()
        self._secrets: Dict[str, str] = {}

    @classmethod
    def from_mapping(
        cls, secrets: Mapping[str, str], encryption_key: Optional[bytes] = None
    ) -> "CredentialStore":
        store = cls(encryption_key)
        for credentials_id, secret in secrets.items():
            store.put(credentials_id, secret)
        return store

    def put(self, credentials_id: str, secret: str) -> None:
        if not credentials_id:
            raise ValueError("credentials_id must not be empty")
        if not secret:
            raise ValueError(f"Secret for '{credentials_id}' must not be empty")
        encrypted = self._fernet.encrypt(secret.encode()).decode()
        with self._lock:
            self._secrets[credentials_id] = encrypted

    def get_secret(self, credentials_id: str) -> Optional[str]:
        """Return the plain secret, or None if unknown or undecryptable."""
        with self._lock:
            encrypted = self._secrets.get(credentials_id)
        if encrypted is None:
            return None
        try:
            return self._fernet.decrypt(encrypted.encode()).decode()
        except InvalidToken:
            logger.warning(f"Stored secret for '{credentials_id}' could not be decrypted")
            return None

    def delete(self, credentials_id: str) -> bool:
        with self._lock:
            return self._secrets.pop(credentials_id, None) is not None

    def ids(self) -> List[str]:
        with self._lock:
            return sorted(self._secrets)

    def __contains__(self, credentials_id: object) -> bool:
        with self._lock:
            return credentials_id in self._secrets
