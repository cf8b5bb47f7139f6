"""Configuration management."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Neo4j
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: SecretStr = SecretStr("password")
    neo4j_database: str | None = Field(default=None, description="Target database; server default when unset")
    max_connection_pool_size: int = Field(default=50, ge=1)
    max_connection_lifetime: int = Field(default=3600, ge=1, description="Connection lifetime in seconds")

    # Logging
    log_level: str = "INFO"
    debug: bool = False

    model_config = SettingsConfigDict(
        env_prefix="NEOFORGE_",
        env_file=".env",
        extra="ignore",
        env_nested_delimiter="__",
    )


settings = Settings()
