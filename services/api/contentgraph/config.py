"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Entity store ───────────────────────────────────────────────────────
    # Full SQLAlchemy URL; takes precedence over the TiDB fields below.
    # e.g. "sqlite+aiosqlite:///./contentgraph.db" for local runs.
    database_url: Optional[str] = None

    # ── TiDB (MySQL-protocol compatible) ───────────────────────────────────
    tidb_host: str = "tidb"
    tidb_port: int = 4000
    tidb_user: str = "root"
    tidb_password: str = ""
    tidb_database: str = "content_graph"

    db_pool_size: int = 20
    db_max_overflow: int = 10

    @property
    def tidb_url(self) -> str:
        return (
            f"mysql+aiomysql://{self.tidb_user}:{self.tidb_password}"
            f"@{self.tidb_host}:{self.tidb_port}/{self.tidb_database}"
        )

    @property
    def sqlalchemy_url(self) -> str:
        return self.database_url or self.tidb_url

    # ── Content limits ─────────────────────────────────────────────────────
    max_text_length: int = 2000          # captions, comments, replies, stories
    post_media_limit: int = 5            # media references per post
    search_limit: int = 50               # max users returned by /users/search

    # ── Observability ──────────────────────────────────────────────────────
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    tracing_enabled: bool = True
    service_name: str = "content-graph"
    environment: str = "development"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
