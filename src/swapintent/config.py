"""Application configuration using pydantic-settings.

The wallet key, the chain RPC endpoint and the venue API key are required
before any swap can run; everything else has a sensible default.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from swapintent.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Credentials
    # ======================
    private_key: Optional[str] = Field(default=None, description="Wallet private key (hex)")
    rpc_url: Optional[str] = Field(default=None, description="Chain RPC endpoint")
    auth_key: Optional[str] = Field(default=None, description="Venue API bearer key")

    # ======================
    # Venue
    # ======================
    api_base_url: str = Field(default="https://api.1inch.dev", description="Venue API base URL")
    router_address: str = Field(
        default="0x111111125421cA6dc452d289314280a0f8842A65",
        description="Aggregation router v6 (allowance spender and EIP-712 verifying contract)",
    )
    source: str = Field(default="sdk-tutorial", description="Source tag sent with quotes and orders")
    request_timeout: float = Field(default=30.0, description="HTTP request timeout in seconds")
    order_expiration: int = Field(
        default=180, description="Order-book order lifetime in seconds"
    )

    # ======================
    # Settlement monitor
    # ======================
    poll_interval: float = Field(default=2.0, description="Seconds between status polls")
    monitor_timeout: float = Field(default=300.0, description="Wall-clock monitor budget in seconds")
    error_backoff: float = Field(default=5.0, description="Extra delay after a failed poll")

    # ======================
    # Chain
    # ======================
    approval_gas_limit: int = Field(default=100000, description="Gas limit for approve()")
    gas_price_buffer_percent: int = Field(
        default=10, description="Percent added on top of the node gas price for approvals"
    )
    confirmation_timeout: float = Field(
        default=120.0, description="Seconds to wait for an approval receipt"
    )

    debug: bool = Field(default=False, description="Enable debug logging")

    def require_credentials(self) -> None:
        """Fail fast when a required credential is missing.

        Raises:
            ConfigurationError: listing every missing variable
        """
        missing = [
            env_name
            for env_name, value in (
                ("PRIVATE_KEY", self.private_key),
                ("RPC_URL", self.rpc_url),
                ("AUTH_KEY", self.auth_key),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(missing)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "private_key": "***" if self.private_key else "(not set)",
            "auth_key": "***" if self.auth_key else "(not set)",
            "rpc_url": self._redact_url(self.rpc_url) if self.rpc_url else "(not set)",
            "api_base_url": self.api_base_url,
            "router_address": self.router_address,
            "source": self.source,
            "monitor": {
                "poll_interval": self.poll_interval,
                "timeout": self.monitor_timeout,
                "error_backoff": self.error_backoff,
            },
            "chain": {
                "approval_gas_limit": self.approval_gas_limit,
                "gas_price_buffer_percent": self.gas_price_buffer_percent,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Hide an API key embedded as the last path segment of an RPC URL."""
        if "://" not in url:
            return url
        proto, rest = url.split("://", 1)
        host, _, path = rest.partition("/")
        if not path:
            return url
        segments = path.split("/")
        if len(segments[-1]) >= 16:
            segments[-1] = "***"
        return f"{proto}://{host}/{'/'.join(segments)}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
