from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "Vaulted Resolver"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Acceleration service (Real-Debrid)
    REALDEBRID_API_URL: str = "https://api.real-debrid.com/rest/1.0"
    REALDEBRID_API_KEY: Optional[str] = None
    REALDEBRID_TIMEOUT: float = 30.0

    # Resolver polling (seconds / attempts)
    INFO_POLL_ATTEMPTS: int = 10
    INFO_POLL_INTERVAL: float = 0.5
    LINKS_POLL_ATTEMPTS: int = 30
    LINKS_POLL_INTERVAL: float = 2.0
    FILE_SELECTION_DELAY: float = 1.0
    RESOLVE_TIMEOUT: Optional[float] = None

    # Source providers
    TORRENTIO_URL: str = "https://torrentio.strem.fun"
    TORRENTIO_CONFIG: str = "sort=qualitysize|qualityfilter=480p,scr,cam|lang=english"
    ZILEAN_API_URL: str = "https://zileanfortheweebs.midnightignite.me"  # Midnight's public Zilean instance
    PROVIDER_FLAGS_PATH: Optional[str] = None  # JSON file for enabled flags; in-memory when unset

    # Video proxy (CORS relay for resolved download URLs)
    PROXY_ALLOWED_HOSTS: List[str] = ["real-debrid.com", "download.real-debrid.com", "rdb.so"]
    PROXY_TIMEOUT: float = 30.0

    class Config:
        env_file = ".env"

settings = Settings()
