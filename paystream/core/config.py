from typing import Optional
from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings
from enum import Enum

class BaseConfig(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name":True
    }

class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

class CompressionType(str, Enum):
    GZIP = "gz"
    BZIP2 = "bz2"
    ZIP = "zip"

class LedgerNetwork(str, Enum):
    DEVNET = "devnet"
    TESTNET = "testnet"
    MAINNET = "mainnet"

class AppSettings(BaseSettings):
    app_name: str = Field(
        default="PayStream",
        min_length=1,
        max_length=100,
        alias="APP_NAME"
    )
    app_port: int = Field(
        default=5000,
        ge=1,
        le=65535,
        alias="APP_PORT"
    )

    app_host: str = Field(default="0.0.0.0")
    app_reload: bool = Field(default=False)
    app_log_level: LogLevel = Field(default=LogLevel.INFO)
    log_format: str = Field(default="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}")
    log_file: str = Field(default="logs/app.log")
    log_rotation: str = Field(default="1 day")
    log_compression: CompressionType = Field(default=CompressionType.GZIP)

    model_config = BaseConfig.model_config

class DatabaseSettings(BaseSettings):
    postgres_user: str = Field(..., min_length=1, alias="POSTGRES_USER")
    postgres_password: str = Field(..., min_length=1, alias="POSTGRES_PASSWORD")
    postgres_db: str = Field(..., min_length=1, alias="POSTGRES_DB")
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, ge=1, le=65535, alias="POSTGRES_PORT")
    debug_sql: bool = Field(default=False)

    @property
    def database_url(self) -> str:
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    model_config = BaseConfig.model_config


class RedisSettings(BaseSettings):
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, ge=1, le=65535, alias="REDIS_PORT")
    redis_password: Optional[str] = Field(default=None, alias="REDIS_PASSWORD")
    redis_database: int = Field(default=0, ge=0, alias="REDIS_DATABASE")
    model_config = BaseConfig.model_config

class LedgerSettings(BaseSettings):
    ledger_api_url: HttpUrl = Field(..., alias="LEDGER_API_URL")
    ledger_api_key: Optional[str] = Field(default=None, alias="LEDGER_API_KEY")
    ledger_network: LedgerNetwork = Field(default=LedgerNetwork.DEVNET, alias="SOLANA_NETWORK")
    program_id: str = Field(
        default="Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg7u31bQz5wA",
        min_length=32,
        alias="PROGRAM_ID",
    )
    ledger_timeout: float = Field(default=30.0, gt=0, alias="LEDGER_TIMEOUT")
    platform_fee_percent: float = Field(default=10.0, ge=0, le=100, alias="PLATFORM_FEE_PERCENT")

    model_config = BaseConfig.model_config

class ContentStoreSettings(BaseSettings):
    ipfs_api_url: HttpUrl = Field(default="https://ipfs.infura.io:5001", alias="IPFS_API_URL")
    ipfs_gateway_url: HttpUrl = Field(default="https://ipfs.io", alias="IPFS_GATEWAY_URL")
    ipfs_project_id: Optional[str] = Field(default=None, alias="IPFS_PROJECT_ID")
    ipfs_project_secret: Optional[str] = Field(default=None, alias="IPFS_PROJECT_SECRET")
    ipfs_timeout: float = Field(default=120.0, gt=0, alias="IPFS_TIMEOUT")
    max_video_bytes: int = Field(default=100 * 1024 * 1024, gt=0, alias="MAX_VIDEO_BYTES")
    max_image_bytes: int = Field(default=5 * 1024 * 1024, gt=0, alias="MAX_IMAGE_BYTES")

    model_config = BaseConfig.model_config

class RewardSettings(BaseSettings):
    reward_threshold_seconds: int = Field(default=30, ge=1, alias="REWARD_THRESHOLD_SECONDS")
    completion_ratio: float = Field(default=0.9, gt=0, le=1, alias="COMPLETION_RATIO")

    model_config = BaseConfig.model_config
