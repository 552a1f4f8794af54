from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):

    # Database
    database_url: str = "sqlite:///./slotbooking.db"

    # Auth/JWT (Tokens werden vom Identity-Service ausgestellt)
    secret_key: str
    jwt_algorithm: str = 'HS256'

    # Facility-Verzeichnis (leer = lokale units-Tabelle)
    facilities_url: str = ""
    facilities_timeout_seconds: int = 10

    # App
    app_name: str = 'Slotbooking'
    debug: bool = False
    log_dir: str = "logs"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
