from core.settings import Settings

# Settings singleton
_settings = None


def get_settings() -> Settings:
    """Dependency that provides application settings."""
    assert (
        _settings is not None
    ), "Settings not initialized. Make sure the app lifespan has started."
    return _settings


def init_settings(settings: Settings | None = None):
    """Initialize settings singleton, from the environment unless given."""
    global _settings
    _settings = settings or Settings()


def clear_settings():
    """Clear settings singleton."""
    global _settings
    _settings = None
