import os
from typing import Optional
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application configuration from environment variables"""

    # App
    app_name: str = "Help Desk"
    debug: bool = os.getenv("DEBUG", "False").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./faq.db")

    # Full-text index (SQLite FTS5 file)
    index_path: str = os.getenv("INDEX_PATH", "./faq_index.db")

    # Generation service (Ollama-compatible)
    generation_url: str = os.getenv("GENERATION_URL", "http://localhost:11434")
    generation_model: str = "mistral"
    generation_temperature: float = 0.7
    generation_top_p: float = 0.9
    generation_num_predict: int = 2048
    generation_timeout: Optional[float] = None  # None waits for the service
    generation_use_context: bool = False

    # Answer resolution
    match_threshold: float = 0.3
    history_limit: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
