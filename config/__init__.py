import os

ENV_ALIASES = {
    "dev": "development",
    "development": "development",
    "test": "testing",
    "testing": "testing",
    "prod": "production",
    "production": "production",
}


def get_settings_module() -> str:
    # ATTENDANCE_SETTINGS names a module outright (e.g. a site-local config)
    explicit = os.getenv("ATTENDANCE_SETTINGS", "").strip()
    if explicit:
        return explicit

    env = os.getenv("APP_ENV", "development").strip().lower()
    return f"config.{ENV_ALIASES.get(env, 'development')}"
