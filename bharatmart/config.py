import os

from dotenv import find_dotenv, load_dotenv

# Class attributes below read the environment at import time
load_dotenv(find_dotenv(usecwd=True))


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class BaseConfig:
    STORE_NAME = os.getenv("STORE_NAME", "BharatMart")
    CHECKOUT_WHATSAPP_NUMBER = os.getenv("CHECKOUT_WHATSAPP_NUMBER", "9983944688")
    MESSAGING_HOST = os.getenv("MESSAGING_HOST", "wa.me")
    MONEY_LOCALE = os.getenv("MONEY_LOCALE", "en_IN")
    CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₹")
    GEOLOCATION_TIMEOUT_SECONDS = float(os.getenv("GEOLOCATION_TIMEOUT_SECONDS", 10))
    REVERSE_GEOCODE_URL = os.getenv(
        "REVERSE_GEOCODE_URL", "https://nominatim.openstreetmap.org/reverse"
    )
    REVERSE_GEOCODE_TIMEOUT_SECONDS = float(os.getenv("REVERSE_GEOCODE_TIMEOUT_SECONDS", 10))
    LOCATION_DISCARD_STALE = _flag("LOCATION_DISCARD_STALE")
    BUYER_ID = os.getenv("BUYER_ID")

class DevelopmentConfig(BaseConfig):
    DEBUG = _flag("DEBUG")
    STORAGE_URL = os.getenv("STORAGE_URL", "sqlite:///bharatmart.db")
    ORDERS_DATABASE_URL = os.getenv("ORDERS_DATABASE_URL", "sqlite:///bharatmart.db")

class TestingConfig(BaseConfig):
    TESTING = True
    STORAGE_URL = "memory://"
    ORDERS_DATABASE_URL = os.getenv("TEST_ORDERS_DATABASE_URL", "sqlite:///:memory:")
    REVERSE_GEOCODE_URL = "https://geocode.test/reverse"

class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False
    STORAGE_URL = os.getenv("STORAGE_URL")
    ORDERS_DATABASE_URL = os.getenv("ORDERS_DATABASE_URL")

    @staticmethod
    def validate():
        missing = []
        if not os.getenv("STORAGE_URL"):
            missing.append("STORAGE_URL")
        if not os.getenv("ORDERS_DATABASE_URL"):
            missing.append("ORDERS_DATABASE_URL")
        if missing:
            raise RuntimeError(
                f"Missing required env vars in production: {', '.join(missing)}"
            )

def get_config_class():
    env = os.getenv("APP_ENV", "development").lower()
    if env == "production":
        ProductionConfig.validate()
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
