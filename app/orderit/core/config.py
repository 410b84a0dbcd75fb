from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "OrderIt"
    BACKEND_API_BASE_URL: str = "http://localhost:5107"
    PROXY_TIMEOUT_SECONDS: float = 30.0
    POD_FILE_BASE_PATH: str = "./pod_files"
    POD_IMAGES_FOLDER: str = "Imágenes"
    POD_IMAGE_CACHE_SECONDS: int = 3600
    METRICS_ENABLED: bool = True


settings = Settings()
