from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    MIN_TEAMS: int = 4
    DEFAULT_BEST_OF: int = 1
    LOG_LEVEL: str = "INFO"
    MATCH_ID_SEPARATOR: str = "-"

    class Config:
        env_file = ".env"
        env_prefix = "BRACKET_"
        extra = "ignore"

settings = Settings()
