from typing import Optional

from joke_common.config.settings import BrokerSettings


class Settings(BrokerSettings):
    APP_NAME: str = "ModerateService"
    API_PORT: int = 3100

    # Private queue bound to the type_update fanout exchange
    TYPE_UPDATE_QUEUE: str = "mod_type_update"
    TYPES_CACHE_PATH: str = "data/moderate/types.json"

    # Bearer token required on the moderation routes. Unset leaves them open.
    MODERATOR_API_TOKEN: Optional[str] = None

    # 100 requests per 15 minutes per client
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_TIMES: int = 100
    RATE_LIMIT_SECONDS: int = 900


# Instantiate settings
settings = Settings()
