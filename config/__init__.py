import os


def get_settings_module() -> str:
    # APP_ENV selects the settings module; development is the default.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def holidays_from_env():
    """Comma separated yyyy-MM-dd list from HOLIDAYS.

    None when unset, so the built-in holiday list applies.
    """
    raw = os.getenv("HOLIDAYS")
    if raw is None:
        return None
    return [item.strip() for item in raw.split(",") if item.strip()]
