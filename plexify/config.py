from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Anthropic (any of the three key names is accepted, first non-empty wins)
    vite_anthropic_api_key: str = ""
    anthropic_api_key: str = ""
    anthropic_apikey: str = ""
    vite_anthropic_model: str = ""
    anthropic_model: str = ""
    anthropic_model_id: str = ""
    anthropic_base_url: str = "https://api.anthropic.com"
    anthropic_version: str = "2023-06-01"

    # OpenAI (gateway fallback + TTS)
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"
    tts_model: str = "tts-1"
    tts_voice: str = "alloy"

    # ElevenLabs
    elevenlabs_api_key: str = ""
    vite_elevenlabs_api_key: str = ""
    elevenlabs_base_url: str = "https://api.elevenlabs.io"

    # Document + media locations
    real_docs_dir: str = "public/real-docs"
    demo_data_dir: str = "public/demo-data"
    audio_output_dir: str = "public/audio"
    podcast_output_dir: str = "public/podcasts"
    default_project_id: str = "golden-triangle"

    # HTTP client
    http_timeout_seconds: float = 120.0

    # App
    app_env: str = "development"
    app_version: str = "0.1.0"
    port: int = 8000
    cors_origins: str = "http://localhost:5173"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"

    model_config = {
        "env_file": (".env", ".env.local"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
