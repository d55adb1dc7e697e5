from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/perkwatch.db"
    timezone: str = ""  # IANA name, empty for the system local zone
    allowed_origins: str = "http://localhost:3000"
    prompt_cooldown_days: int = 30
    force_immediate_delay_seconds: int = 10

    model_config = {"env_prefix": "", "case_sensitive": False}


settings = Settings()

# Key under which the notification preference blob is stored in the key-value store
NOTIFICATION_PREFS_KEY = "notification_preferences"
