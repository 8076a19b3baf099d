from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    bolna_api_key: str = ""
    bolna_api_url: str = "https://api.bolna.ai"
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    log_level: str = "INFO"
    poll_interval_seconds: float = 10.0
    max_poll_duration_seconds: float = 15 * 60
    max_consecutive_poll_errors: int = 5
    inbound_polling_enabled: bool = False
    inbound_poll_interval_seconds: float = 15.0
    inbound_executions_page_size: int = 50
    directory_seed_file: str | None = None

    @property
    def max_poll_attempts(self) -> int:
        return int(self.max_poll_duration_seconds // self.poll_interval_seconds)
