from __future__ import annotations

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Matchfeed"
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 3000
    log_level: str = "INFO"

    database_url: str = "sqlite:///./matchfeed.db"

    redis_url: str = ""
    cache_key: str = "jobs:all"
    cache_ttl_sec: int = 3600
    cache_retry_after_sec: float = 30.0

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model_scorer: str = "gpt-4o-mini"
    openai_model_classifier: str = "gpt-4o-mini"
    openai_timeout_sec: int = 30

    local_llm_enabled: bool = False
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model: str = "qwen2.5:14b-instruct"
    local_llm_timeout_sec: int = 60

    llm_router_score_provider: str = "openai"
    llm_router_classify_provider: str = "openai"

    scoring_timeout_sec: float = 5.0
    classifier_timeout_sec: float = 10.0
    resume_prefix_chars: int = 1000
    description_prefix_chars: int = 200
    fallback_score_min: int = 60
    fallback_score_max: int = 89
    ranking_page_size: int = 50
    race_max_workers: int = 8

    adzuna_app_id: str = ""
    adzuna_app_key: str = ""
    adzuna_country: str = "in"
    adzuna_results_per_page: int = 50
    adzuna_timeout_sec: int = 20

    demo_user_email: str = "test@gmail.com"
    demo_user_password: str = "test@123"
    seed_search_term: str = "software engineer"

    cors_origins: str = "*"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("fallback_score_max")
    @classmethod
    def validate_fallback_band(cls, value: int, info: ValidationInfo) -> int:
        low = info.data.get("fallback_score_min", 0)
        if value < low or value > 100:
            raise ValueError("fallback_score_max must be between fallback_score_min and 100")
        return value

    @property
    def raced_call_timeout_sec(self) -> float:
        return max(self.scoring_timeout_sec, self.classifier_timeout_sec)

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
