from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 4000
    debug: bool = False
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 7 * 24 * 60
    cors_origins: list[str] = []
    attachments_path: str = "uploads"  # Directory path for calibration files and gauge images
    llm_model: str = "gpt-4o-mini"
    llm_api_key: str = ""  # AI chat is disabled when empty
    llm_max_tokens: int = 512
    admin_password: str | None = None  # Bootstrap admin account is created only when set

    model_config = {
        "env_file": [".env"],
        "env_prefix": "CALCRM_",
        "extra": "ignore",
    }
