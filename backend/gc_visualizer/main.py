import logging

from .config import Settings
from .factory import create_app

settings = Settings.from_env()
logging.basicConfig(level=settings.log_level.upper())

app = create_app(settings)
