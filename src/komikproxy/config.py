"""Configuration using pydantic-settings."""

from pydantic_settings import BaseSettings

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class ProxySettings(BaseSettings):
    """Proxy configuration."""

    base_url: str = "https://komiku.id"
    listing_path: str = "/daftar-komik/"
    item_path: str = "/manga/{slug}/"
    timeout: float = 10.0
    max_redirects: int = 5
    user_agent: str = DEFAULT_USER_AGENT
    max_connections: int = 100
    max_keepalive_connections: int = 20
    store_max_entries: int | None = None
    log_level: str = "INFO"

    model_config = {"env_prefix": "KOMIK_PROXY_"}

    @property
    def listing_url(self) -> str:
        return self.base_url.rstrip("/") + self.listing_path

    def item_url(self, slug: str) -> str:
        return self.base_url.rstrip("/") + self.item_path.format(slug=slug)

    def page_url(self, path: str) -> str:
        """URL of a site page given its path without surrounding slashes."""
        return f"{self.base_url.rstrip('/')}/{path}/"


settings = ProxySettings()
