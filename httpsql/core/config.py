from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    CONFIG_PATH: str = "config.json"
    HOST: str = "0.0.0.0"
    # Takes precedence over the "Port" key of the config file
    PORT: Optional[int] = None
    LOG_LEVEL: str = "INFO"

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


DEFAULT_PORT = 9000

# Create a single instance of the settings to use everywhere
settings = Settings()
