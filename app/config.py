import os

class BaseConfig:
    JSON_SORT_KEYS = False
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    RATELIMIT_STORAGE_URL = os.getenv("RATELIMIT_STORAGE_URL", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "200 per hour")
    PROMO_LIMIT_PER_IP = os.getenv("PROMO_LIMIT_PER_IP", "10 per minute")
    # "sql" keeps carts in the database, "memory" in the process
    CART_STORE = os.getenv("CART_STORE", "sql")
    GUEST_USER_ID = os.getenv("GUEST_USER_ID", "guest")
    FREE_SHIPPING_THRESHOLD = os.getenv("FREE_SHIPPING_THRESHOLD", "1000")
    FLAT_SHIPPING_FEE = os.getenv("FLAT_SHIPPING_FEE", "150")
    VAT_RATE = os.getenv("VAT_RATE", "0.15")
    OTEL_ENABLED = os.getenv("OTEL_ENABLED", "1") not in ("0", "false", "no")
    OTEL_SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "partscart-backend")
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318/v1/traces")

class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-insecure-key")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///dev.db")

class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test-key"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    CART_STORE = os.getenv("CART_STORE", "memory")
    RATELIMIT_DEFAULT = "10000 per hour"
    PROMO_LIMIT_PER_IP = "1000 per minute"

class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")

    @staticmethod
    def validate():
        missing = []
        if not os.getenv("SECRET_KEY"):
            missing.append("SECRET_KEY")
        if not os.getenv("DATABASE_URL"):
            missing.append("DATABASE_URL")
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
