import json
import threading
from pathlib import Path
from loguru import logger
from typing import Dict, List, Optional, Protocol

from vaulted.core.exceptions import DuplicateProviderError, ProviderNotFoundError
from vaulted.providers.base import SourceProvider


class FlagStore(Protocol):
    """Persists provider enabled flags outside the process."""

    def get(self, provider_id: str) -> Optional[bool]:
        ...

    def set(self, provider_id: str, enabled: bool) -> None:
        ...


class MemoryFlagStore:
    def __init__(self, flags: Optional[Dict[str, bool]] = None):
        self.flags = dict(flags or {})

    def get(self, provider_id: str) -> Optional[bool]:
        return self.flags.get(provider_id)

    def set(self, provider_id: str, enabled: bool) -> None:
        self.flags[provider_id] = enabled


class JsonFlagStore:
    """
    Flags kept as a single JSON object: {"torrentio": true, "vidsrc": false}.
    """
    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, bool]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read provider flags from {self.path}: {e}")
            return {}
        return {k: bool(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def get(self, provider_id: str) -> Optional[bool]:
        with self._lock:
            return self._load().get(provider_id)

    def set(self, provider_id: str, enabled: bool) -> None:
        with self._lock:
            flags = self._load()
            flags[provider_id] = enabled
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(flags, indent=2, sort_keys=True), encoding="utf-8")


class ProviderRegistry:
    """
    Holds the source providers in priority order. Membership is append-only.
    """
    def __init__(self, flag_store: Optional[FlagStore] = None):
        self.flag_store = flag_store or MemoryFlagStore()
        self._providers: List[SourceProvider] = []
        self._lock = threading.Lock()

    def register(self, provider: SourceProvider) -> SourceProvider:
        with self._lock:
            if any(p.id == provider.id for p in self._providers):
                raise DuplicateProviderError(provider.id)

            stored = self.flag_store.get(provider.id)
            if stored is not None:
                provider.enabled = stored

            self._providers.append(provider)
            self._providers.sort(key=lambda p: p.priority)

        logger.info(f"Registered provider {provider.id} (priority {provider.priority}, enabled={provider.enabled})")
        return provider

    def set_enabled(self, provider_id: str, enabled: bool) -> SourceProvider:
        with self._lock:
            provider = self._find(provider_id)
            if provider is None:
                raise ProviderNotFoundError(provider_id)
            provider.enabled = enabled
            self.flag_store.set(provider_id, enabled)

        logger.info(f"Provider {provider_id} {'enabled' if enabled else 'disabled'}")
        return provider

    def list(self) -> List[SourceProvider]:
        with self._lock:
            return list(self._providers)

    def get(self, provider_id: str) -> Optional[SourceProvider]:
        with self._lock:
            return self._find(provider_id)

    def enabled(self) -> List[SourceProvider]:
        with self._lock:
            return [p for p in self._providers if p.enabled]

    def _find(self, provider_id: str) -> Optional[SourceProvider]:
        for provider in self._providers:
            if provider.id == provider_id:
                return provider
        return None
