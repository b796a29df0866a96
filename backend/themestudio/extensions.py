from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from .services.cache import MemoryCacheStore
from .themes.loader import ThemeLoader

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()

# Per-(store, theme) global sections cache; any object with get/set/clear works.
section_cache = MemoryCacheStore()
themes = ThemeLoader()
