from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    strict_classification: bool = True
    default_timeout: float | None = None

    model_config = {"env_prefix": "FINQUOTE_"}


settings = Settings()
