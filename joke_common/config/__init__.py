from .settings import BrokerSettings, PROJECT_ROOT_DIR

__all__ = ["BrokerSettings", "PROJECT_ROOT_DIR"]
