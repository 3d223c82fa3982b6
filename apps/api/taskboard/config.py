from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", extra="ignore")

  database_url: str = "postgresql+asyncpg://taskboard:taskboard@db:5432/taskboard"
  app_version: str = "0.1.0"
  environment: str = "production"  # development | production
  api_docs_enabled: bool = False
  log_level: str = "INFO"

  cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
  trusted_hosts: str = "localhost,127.0.0.1,0.0.0.0,api,web"

  board_columns: str = "todo,inProgress,done"
  seed_demo_users: bool = True

  ai_provider: str = "local"  # local | openai | anthropic
  ai_timeout_seconds: float = 60.0
  openai_api_key: str | None = None
  openai_base_url: str = "https://api.openai.com/v1"
  openai_model: str = "gpt-4-turbo-preview"
  anthropic_api_key: str | None = None
  anthropic_base_url: str = "https://api.anthropic.com/v1"
  anthropic_model: str = "claude-3-opus-20240229"

  rate_limit_assistant_per_minute: int = 30

  def cors_origin_list(self) -> list[str]:
    return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

  def trusted_host_list(self) -> list[str]:
    return [h.strip() for h in self.trusted_hosts.split(",") if h.strip()]

  def column_list(self) -> list[str]:
    return [c.strip() for c in self.board_columns.split(",") if c.strip()]

  def expose_errors(self) -> bool:
    return self.environment.strip().lower() == "development"


settings = Settings()
