"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration — reads from environment / .env file."""

    # Database
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "serp_user"
    db_pass: str = "serp_pass"
    db_name: str = "serp_collector"
    database_url: str = ""  # full SQLAlchemy URL, overrides the db_* fields

    # Server
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origins: str = "*"
    trust_proxy: bool = False
    log_level: str = "INFO"

    # Workers
    api_key: str = ""
    max_pages: int = 5

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_pass}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def cors_origins(self) -> list[str]:
        if self.allowed_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",")]


settings = Settings()
