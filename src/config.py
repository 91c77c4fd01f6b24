from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

class Settings(BaseSettings):
    # App
    APP_NAME: str = "Slack MCP Gateway"
    DEBUG: bool = False
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # Slack
    SLACK_TOKEN: str = ""
    SLACK_API_BASE_URL: str = "https://slack.com/api"

    # MCP
    MCP_SERVER_NAME: str = "mcp-slack-oauth"
    MCP_SERVER_VERSION: str = "0.5.0"
    LOG_LEVEL: str = "warn"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

@lru_cache()
def get_settings() -> Settings:
    return Settings()
