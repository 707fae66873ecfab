"""Application settings using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_EXTENSIONS = [
    ".c", ".cc", ".cpp", ".cs", ".css", ".go", ".h", ".hpp", ".html",
    ".java", ".js", ".json", ".kt", ".md", ".php", ".ps1", ".py", ".rb",
    ".rs", ".scala", ".sh", ".sql", ".swift", ".toml", ".ts", ".tsx",
    ".txt", ".xml", ".yaml", ".yml",
]

DEFAULT_ALLOWED_FILENAMES = [
    ".editorconfig", ".gitattributes", ".gitignore", "Dockerfile",
    "LICENSE", "Makefile", "README",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # General
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # --- Indexer ---
    base_directory: str = "~/.codesearch/repositories"
    allowed_extensions: list[str] = DEFAULT_ALLOWED_EXTENSIONS
    allowed_filenames: list[str] = DEFAULT_ALLOWED_FILENAMES
    filter_languages: list[str] = []
    batch_size: int = 20
    max_parallel_clones: int = 2
    max_parallel_bulk_requests: int = 4
    job_queue_size: int = 0  # 0 = unbounded
    git_executable: str = "git"

    # --- Search index ---
    search_backend: str = "elasticsearch"  # "elasticsearch" | "memory"

    elasticsearch_url: str = "http://localhost:9200"
    elasticsearch_index: str = "code-search"
    elasticsearch_username: str | None = None
    elasticsearch_password: str | None = None
    elasticsearch_api_key: str | None = None
    elasticsearch_verify_certs: bool = True

    # --- GitHub ---
    github_api_url: str = "https://api.github.com"
    github_access_token: str | None = None
    github_page_size: int = 20
    github_request_delay_ms: int = 0

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_directory = str(Path(self.base_directory).expanduser())

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
