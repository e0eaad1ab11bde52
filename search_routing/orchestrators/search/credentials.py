"""Credential lookup: the engine only asks whether a key is held and for its opaque value."""

import os
import threading
from abc import ABC, abstractmethod


class CredentialStore(ABC):
    """Base class for caller credential lookup."""

    @abstractmethod
    def has_credential(self, provider_id: str) -> bool:
        """True when a non-empty credential is held for the provider."""

    @abstractmethod
    def get_credential(self, provider_id: str) -> str | None:
        """Opaque credential for the provider, or None."""


class InMemoryCredentialStore(CredentialStore):
    def __init__(self, keys: dict[str, str] | None = None) -> None:
        self._lock = threading.Lock()
        self._keys: dict[str, str] = dict(keys or {})

    def set_credentials(self, keys: dict[str, str]) -> None:
        """Replace the whole key map."""
        with self._lock:
            self._keys = dict(keys)

    def has_credential(self, provider_id: str) -> bool:
        return bool(self._keys.get(provider_id))

    def get_credential(self, provider_id: str) -> str | None:
        return self._keys.get(provider_id) or None


class EnvCredentialStore(CredentialStore):
    """Reads `<prefix><PROVIDER_ID>` from the environment, e.g. SEARCH_KEY_SERPER."""

    def __init__(self, prefix: str = "SEARCH_KEY_") -> None:
        self.prefix = prefix

    def _var(self, provider_id: str) -> str:
        return self.prefix + provider_id.upper().replace("-", "_")

    def has_credential(self, provider_id: str) -> bool:
        return bool(os.getenv(self._var(provider_id), "").strip())

    def get_credential(self, provider_id: str) -> str | None:
        value = os.getenv(self._var(provider_id), "").strip()
        return value or None


class ChainedCredentialStore(CredentialStore):
    """First store holding a credential wins."""

    def __init__(self, *stores: CredentialStore) -> None:
        self.stores = list(stores)

    def has_credential(self, provider_id: str) -> bool:
        return any(store.has_credential(provider_id) for store in self.stores)

    def get_credential(self, provider_id: str) -> str | None:
        for store in self.stores:
            value = store.get_credential(provider_id)
            if value:
                return value
        return None
