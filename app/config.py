from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # checked per request, so the app still boots without it
    SLACK_SIGNING_SECRET: str | None = None
    SLACK_REQUEST_MAX_AGE_SECONDS: int = 300

    # only paths under this prefix are verified; "" means every path
    SLACK_VERIFY_PATH_PREFIX: str = "/slack"

    LOG_LEVEL: str = "INFO"


def get_settings() -> Settings:
    return Settings()


settings = get_settings()
