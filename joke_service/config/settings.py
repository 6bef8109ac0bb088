from typing import Literal, Optional

from pydantic import Field, PostgresDsn, ValidationInfo, field_validator

from joke_common.config.settings import BrokerSettings


class Settings(BrokerSettings):
    APP_NAME: str = "JokeService"
    API_PORT: int = 3000
    ETL_APP_NAME: str = "JokeETLService"
    ETL_API_PORT: int = 3001

    # Backend selection happens once at startup; switching requires a restart.
    DB_TYPE: Literal["mongo", "postgres"] = "mongo"

    # Document store
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DATABASE: str = "jokes"

    # Relational store
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "user"
    DB_PASSWORD: str = "password"
    DB_NAME: str = "jokes"
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)
    DB_ECHO: bool = False

    # Insert the default types and sample jokes when the store holds no jokes
    SEED_DEFAULT_JOKES: bool = True
    MAX_SAMPLE_COUNT: int = 100

    # 100 requests per 2 minutes per client
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_TIMES: int = 100
    RATE_LIMIT_SECONDS: int = 120

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> str:
        if isinstance(v, str):
            return v
        return str(PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=info.data.get("DB_USER"),
            password=info.data.get("DB_PASSWORD"),
            host=info.data.get("DB_HOST"),
            port=info.data.get("DB_PORT"),
            path=info.data.get("DB_NAME") or "",
        ))


# Instantiate settings
settings = Settings()
