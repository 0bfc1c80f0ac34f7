from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App Environment
    app_env: str = "prod"

    # Server Config
    host: str = "127.0.0.1"
    port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Storage ("postgres" or "memory")
    storage_backend: str = "postgres"
    postgres_dsn: str = ""

    # Google sign-in
    google_client_id: str = ""
    local_user_id: str = "local-user"

    # YouTube
    youtube_api_key: str = ""
    youtube_api_timeout_seconds: float = 15.0
    transcript_languages: list[str] = ["en"]

    # OpenAI
    openai_api_key: str = ""
    openai_api_base_url: str = "https://api.openai.com/v1"

    # PostHog
    posthog_api_key: str = ""
    posthog_api_url: str = "https://us.i.posthog.com"

    # Models
    summary_model: str = "gpt-4o-mini"
    llm_request_timeout_seconds: float = 60.0
    llm_retry_delay_seconds: float = 2.0

    # Mock LLM calls
    mock_llm_calls: bool = False

    # Sync
    videos_per_channel: int = 5
    max_videos_per_sync: int = 10
    default_summary_limit: int = 20
    seed_default_channels: bool = False

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def is_local(self) -> bool:
        return self.app_env == "local"
