from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 1inch
    oneinch_api_key: str = ""
    oneinch_api_url: str = "https://api.1inch.dev"

    # Pendle
    pendle_sdk_url: str = "https://api-v2.pendle.finance/core/"
    pendle_api_url: str = "https://api-v2.pendle.finance"

    # Octav
    octav_api_key: str = ""
    octav_api_url: str = "https://api.octav.fi"

    # Defaults applied to requests that omit them
    default_chain_id: int = 8453  # Base
    default_slippage: float = 0.01

    # Outbound HTTP
    http_timeout_seconds: float = 30.0
    historical_request_delay_seconds: float = 0.1

    # Logging
    log_level: str = "INFO"
    verbose_logging: bool = False

    cors_origins: list[str] = ["*"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def oneinch_configured(self) -> bool:
        return bool(self.oneinch_api_key)

    @property
    def octav_configured(self) -> bool:
        return bool(self.octav_api_key)
