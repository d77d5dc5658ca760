"""
Application configuration — reads all settings from environment variables.
"""

from pathlib import Path
from typing import Dict, List

from pydantic_settings import BaseSettings

from coursebot.services.provider_registry import ProviderId

DEFAULT_PROMPT_PATH = str(Path(__file__).parent / "prompts" / "system-prompt.md")


class Settings(BaseSettings):
    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "CourseBot"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: str = "*"

    # ── Database ─────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./coursebot.db"

    # ── AI providers ─────────────────────────────────────
    GROQ_API_KEY: str = ""
    GROQ_MODEL: str = "llama-3.1-8b-instant"
    TOGETHER_API_KEY: str = ""
    TOGETHER_MODEL: str = "meta-llama/Llama-3-8b-chat-hf"
    HF_TOKEN: str = ""
    HF_MODELS: str = (
        "microsoft/DialoGPT-medium,"
        "facebook/blenderbot-400M-distill,"
        "microsoft/DialoGPT-small,"
        "HuggingFaceH4/zephyr-7b-beta"
    )
    PROVIDER_TIMEOUT_S: float = 15.0
    MAX_TOKENS: int = 150
    TEMPERATURE: float = 0.7

    # ── Chat ─────────────────────────────────────────────
    SYSTEM_PROMPT_PATH: str = DEFAULT_PROMPT_PATH
    MAX_HISTORY_LENGTH: int = 10
    CONTEXT_HISTORY_LENGTH: int = 6
    MAX_SESSIONS: int = 1000

    # ── Rate Limiting ────────────────────────────────────
    RATE_LIMIT_PER_MINUTE: int = 60

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    def provider_credentials(self) -> Dict[ProviderId, str]:
        return {
            ProviderId.GROQ: self.GROQ_API_KEY,
            ProviderId.TOGETHER: self.TOGETHER_API_KEY,
            ProviderId.HUGGINGFACE: self.HF_TOKEN,
        }

    def hf_model_list(self) -> List[str]:
        return [m.strip() for m in self.HF_MODELS.split(",") if m.strip()]


settings = Settings()
