from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    port: int = 8003
    data_dir: str = "/data"
    database_url: str | None = None

    jwt_secret: str = "originality-service-development-secret-key"
    jwt_algorithm: str = "HS256"

    log_level: str = "INFO"

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.data_dir.rstrip('/')}/originality_service.db"


settings = Settings()
