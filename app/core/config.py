from pydantic_settings import BaseSettings, SettingsConfigDict
import os

class Settings(BaseSettings):
    APP_ENV: str = "dev"

    # fileName 쿼리는 항상 이 디렉터리 기준으로 해석
    STORAGE_DIR: str = "./public"

    # audiowaveform 기본값 (원래 서비스는 채널 분리 on)
    SAMPLES_PER_PIXEL: int = 512
    SPLIT_CHANNELS: bool = True
    BITS: int = 8

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
os.makedirs(settings.STORAGE_DIR, exist_ok=True)
