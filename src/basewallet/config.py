"""Application configuration using pydantic-settings.

Chain, RPC retry and quoting parameters for the Base wallet assistant.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ALCHEMY_BASE_URL = "https://base-mainnet.g.alchemy.com/v2/{api_key}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Telegram
    # ======================
    telegram_bot_token: str = Field(default="", description="Telegram bot token from BotFather")

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # Chain RPC
    # ======================
    base_rpc_url: str = Field(default="https://mainnet.base.org", description="Base RPC URL")
    alchemy_api_key: Optional[str] = Field(
        default=None, description="Alchemy API key (overrides base_rpc_url when set)"
    )
    chain_id: int = Field(default=8453, description="EVM chain ID")
    rpc_timeout: float = Field(default=10.0, description="Per-request RPC timeout in seconds")
    rpc_max_attempts: int = Field(default=3, ge=1, description="Attempts per chain read")
    rpc_retry_delay: float = Field(
        default=1.0, ge=0, description="Base delay between attempts in seconds"
    )

    # ======================
    # Quoting
    # ======================
    quote_timeout: float = Field(
        default=20.0, description="Deadline for a single quote/price/balance request"
    )
    default_slippage: Decimal = Field(
        default=Decimal("0.5"), ge=0, lt=100, description="Default slippage tolerance in percent"
    )
    fallback_eth_price: Decimal = Field(
        default=Decimal("2000"), description="ETH/USD used when every pool source fails"
    )
    max_runtime_tokens: int = Field(
        default=256, ge=1, description="Tokens resolved by address kept in memory"
    )

    # ======================
    # Uniswap V3 (Base)
    # ======================
    uniswap_v3_factory: str = Field(
        default="0x33128a8fC17869897dcE68Ed026d694621f6FDfD", description="V3 factory"
    )
    pool_init_code_hash: str = Field(
        default="0xe34f199b19b2b4f47f68442619d555527d244f78a3297ea89325f843f87b8b54",
        description="V3 pool init code hash for CREATE2 derivation",
    )
    swap_router: str = Field(
        default="0x2626664c2603336E57B271c5C0b26F421741e481", description="SwapRouter02"
    )

    @property
    def rpc_url(self) -> str:
        """Effective RPC endpoint."""
        if self.alchemy_api_key:
            return ALCHEMY_BASE_URL.format(api_key=self.alchemy_api_key)
        return self.base_rpc_url

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "telegram_bot_token": "***" if self.telegram_bot_token else "(not set)",
            "chain": {
                "chain_id": self.chain_id,
                "rpc": "alchemy (***)" if self.alchemy_api_key else self.base_rpc_url,
                "timeout": self.rpc_timeout,
                "max_attempts": self.rpc_max_attempts,
                "retry_delay": self.rpc_retry_delay,
            },
            "quoting": {
                "timeout": self.quote_timeout,
                "default_slippage": str(self.default_slippage),
                "fallback_eth_price": str(self.fallback_eth_price),
            },
            "uniswap": {
                "factory": self.uniswap_v3_factory,
                "router": self.swap_router,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
