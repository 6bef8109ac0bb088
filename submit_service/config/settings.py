from joke_common.config.settings import BrokerSettings


class Settings(BrokerSettings):
    APP_NAME: str = "SubmitService"
    API_PORT: int = 3200

    # Private queue bound to the type_update fanout exchange
    TYPE_UPDATE_QUEUE: str = "sub_type_update"
    TYPES_CACHE_PATH: str = "data/submit/types.json"


# Instantiate settings
settings = Settings()
