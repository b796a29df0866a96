import os
from dotenv import load_dotenv

load_dotenv()

PACKAGED_THEMES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "themes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Theme bundles: <THEMES_DIR>/<code>/theme.json + templates/<type>.json
    THEMES_DIR = os.getenv("THEMES_DIR", PACKAGED_THEMES_DIR)
    DEFAULT_THEME = os.getenv("DEFAULT_THEME", "base")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    AUDIT_ENABLED = os.getenv("AUDIT_ENABLED", "true").lower() in ("1", "true", "yes")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
    SQLALCHEMY_DATABASE_URI = os.getenv("DEV_DATABASE_URI", "sqlite:///theme_studio_dev.db")


class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    THEMES_DIR = PACKAGED_THEMES_DIR
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URI")


config_by_name = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}
