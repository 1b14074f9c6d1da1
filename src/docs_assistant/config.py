from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    openai_api_key: SecretStr = SecretStr("")
    openai_base_url: str = "https://api.openai.com/v1"

    completion_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"

    chat_temperature: float = 0.7
    grounded_temperature: float = 0.2
    response_tone: str = "friendly and concise"

    # Crawl / index
    max_crawl_pages: int = 200
    chunk_size: int = 1200
    chunk_overlap: int = 200
    embedding_batch_size: int = 100
    fetch_timeout: float = 15.0
    user_agent: str = "docs-assistant-crawler/1.0 (+https://docs.navigaglobal.com)"

    # Retrieval
    relevance_threshold: float = 0.1
    retrieval_k: int = 5
    max_citations: int = 2
    max_quote_chars: int = 60

    # Free chat
    max_turns: int = 10
    default_user_id: str = "default-user"

    llm_timeout: float = 60.0

    cors_allow_origins: str = "*"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    @model_validator(mode="after")
    def _check_limits(self) -> "Settings":
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError("chunk_overlap must be >= 0 and < chunk_size")
        if self.max_crawl_pages <= 0 or self.retrieval_k <= 0:
            raise ValueError("max_crawl_pages and retrieval_k must be positive")
        if self.max_turns <= 0 or self.embedding_batch_size <= 0:
            raise ValueError("max_turns and embedding_batch_size must be positive")
        return self

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


settings = Settings()
