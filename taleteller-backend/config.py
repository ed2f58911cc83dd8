import logging
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

log = logging.getLogger("taleteller")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "TaleTeller API"
    API_PREFIX: str = "/api"
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    # Chat completions for grammar, choices and continuations (Groq by default)
    GROQ_API_KEY: str = ""
    LLM_BASE_URL: str = "https://api.groq.com/openai/v1"
    LLM_MODEL: str = "llama-3.3-70b-versatile"
    LLM_TEMPERATURE: float = 0.8
    CHOICE_COUNT: int = 3

    STABILITY_API_KEY: str = ""
    STABILITY_API_URL: str = "https://api.stability.ai/v2beta/stable-image/generate/core"
    IMAGE_OUTPUT_FORMAT: str = "png"

    # Where the client session finds the backend
    BACKEND_URL: str = "http://localhost:5000/api"
    CLIENT_TIMEOUT_SECONDS: float = 60.0


settings = Settings()


def setup_logging(level: str = None):
    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=(level or settings.LOG_LEVEL).upper(),
    )
