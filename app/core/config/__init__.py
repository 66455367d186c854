from .config import Settings, settings
