"""
config.py

Centralized configuration management using pydantic-settings.
All modules must import settings from this file.
Direct os.getenv() calls are prohibited elsewhere.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings loaded from .env file."""

    # Database
    mysql_host: str = "127.0.0.1"
    mysql_port: int = 3306
    mysql_user: str = "reconciler"
    mysql_password: str = ""
    mysql_db: str = "diabetes_sync"

    # Operating mode
    client_only_mode: bool = False
    engineering_mode: bool = False
    reading_source_enabled: bool = False

    # Receive preferences (defaults for the settings-backed preference store)
    receive_cgm: bool = False
    receive_insulin: bool = False
    receive_carbs: bool = False
    receive_temp_target: bool = False
    receive_tbr_eb: bool = False
    receive_profile_switch: bool = False
    receive_therapy_events: bool = False
    receive_offline_event: bool = False
    receive_profile_store: bool = True

    # Epoch ms of the last profile edit made on this node
    local_profile_last_change: int = 0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


settings = Settings()
