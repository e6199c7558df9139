from pydantic import HttpUrl
from pydantic_settings import SettingsConfigDict

from gas_suggestion_api.config.gas import GasConfig
from gas_suggestion_api.config.logger import LoggerConfig


class Config(LoggerConfig, GasConfig):
    SERVER_HOST: str = 'localhost'
    SERVER_PORT: int = 8000
    RELOAD: bool = True
    VERSION: str = '0.0.1'
    # generate key at https://developers.dex.guru/
    PUBLIC_KEY: str = 'API_KEY'
    PUBLIC_API_DOMAIN: HttpUrl = 'https://api.dev.dex.guru'
    WEB3_TIMEOUT: int = 10
    RPC_RETRY_ATTEMPTS: int = 1
    CORS_ORIGINS: list[str] = ['*']
    CORS_CREDENTIALS: bool = True
    CORS_METHODS: list[str] = ['*']
    CORS_HEADERS: list[str] = ['*']
    WORKERS_COUNT: int = 1

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')


config = Config()
