from typing import List, Optional


class VaultedError(Exception):
    """Base class for every error raised by the resolution core."""


# --- Non-fatal, isolated failures ---

class ProviderFetchError(VaultedError):
    """A single provider failed; its contribution becomes an empty list."""


class CacheCheckError(VaultedError):
    """A cache availability batch failed; its hashes stay uncached."""


# --- Registry misuse ---

class DuplicateProviderError(VaultedError):
    def __init__(self, provider_id: str):
        super().__init__(f"Provider '{provider_id}' is already registered")
        self.provider_id = provider_id


class ProviderNotFoundError(VaultedError):
    def __init__(self, provider_id: str):
        super().__init__(f"Provider '{provider_id}' is not registered")
        self.provider_id = provider_id


# --- Real-Debrid transport ---

class RealDebridAPIError(VaultedError):
    """
    Raised by the Real-Debrid client for a non-2xx answer or a transport error.
    `status_code` is None when the request never got a response.
    """
    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(f"[{status_code}] {message}" if status_code else message)
        self.status_code = status_code


# --- Per-candidate resolver failures ---

class DebridError(VaultedError):
    """
    Fatal for one candidate. The fallback loop advances to the next one.
    `cleanup` tells the resolver whether the remote torrent must be deleted.
    """
    cleanup = True


class AddMagnetError(DebridError):
    pass


class NotCachedError(DebridError):
    pass


class TorrentError(DebridError):
    def __init__(self, status: str):
        super().__init__(f"Torrent error: {status}")
        self.status = status


class DebridRequestError(DebridError):
    pass


class DebridTimeoutError(DebridError):
    pass


class UnrestrictError(DebridError):
    cleanup = False


class NoPlayableLinksError(DebridError):
    cleanup = False


class NoCredentialError(VaultedError):
    """No acceleration credential: the magnet has to be handled outside the core."""


# --- Request level ---

class ExhaustedError(VaultedError):
    def __init__(self, attempted: List[str]):
        names = ", ".join(attempted) if attempted else "none"
        super().__init__(f"No playable source found (providers tried: {names})")
        self.attempted = attempted


class ResolutionTimeoutError(VaultedError):
    pass
