"""Configuration management for the application."""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    api_title: str = "Multi-chain Tax Export API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api/v1"

    # CORS Configuration
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Logging
    log_level: str = "INFO"

    # HTTP client
    http_timeout_seconds: float = 30.0
    max_consecutive_errors: int = 3

    # Etherscan v2 (multichain endpoint, selected by chainid)
    etherscan_api_url: str = "https://api.etherscan.io/v2/api"
    etherscan_api_key: Optional[str] = None
    etherscan_page_size: int = 100
    etherscan_max_pages: int = 100
    etherscan_interval_seconds: float = 0.35  # free tier: 3 requests/sec

    # Cosmos LCD (endpoints come from the chain registry)
    lcd_page_size: int = 100
    lcd_max_pages: int = 50
    lcd_interval_seconds: float = 0.3

    # Mintscan
    mintscan_api_url: str = "https://apis.mintscan.io"
    mintscan_api_key: Optional[str] = None
    mintscan_page_size: int = 50
    mintscan_max_pages: int = 50
    mintscan_interval_seconds: float = 0.5

    # Celenium (Celestia indexer)
    celenium_api_url: str = "https://api-mainnet.celenium.io"
    celenium_api_key: Optional[str] = None
    celenium_page_size: int = 100
    celenium_max_pages: int = 50
    celenium_interval_seconds: float = 0.3

    # Tatum data API
    tatum_api_url: str = "https://api.tatum.io/v4/data/transactions"
    tatum_api_key: Optional[str] = None
    tatum_page_size: int = 50
    tatum_max_pages: int = 100
    tatum_interval_seconds: float = 0.3

    # GoldRush (Covalent)
    goldrush_api_url: str = "https://api.covalenthq.com/v1"
    goldrush_api_key: Optional[str] = None
    goldrush_page_size: int = 100
    goldrush_max_pages: int = 50
    goldrush_interval_seconds: float = 0.3

    # Pikespeak (NEAR)
    pikespeak_api_url: str = "https://api.pikespeak.ai"
    pikespeak_api_key: Optional[str] = None
    pikespeak_page_size: int = 50
    pikespeak_max_pages: int = 100
    pikespeak_interval_seconds: float = 0.5

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
