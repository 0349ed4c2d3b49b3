"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration"""

    supabase_url: str = ""
    supabase_key: str = ""
    openai_api_key: str = ""
    model_choice: str = "openai-responses:gpt-4o"
    chat_web_search: bool = True

    # Outer deadline for one full analysis, in seconds
    analysis_timeout_seconds: float = 60.0

    server_name: str = "sba-loan-analyst"
    log_level: str = "INFO"
    http_host: str = "0.0.0.0"
    http_port: int = 8000
    allowed_origins: str = "http://localhost:3000"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


# Global settings instance
settings = Settings()
