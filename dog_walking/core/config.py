from pydantic_settings import BaseSettings

# Documented fallback, never valid for a running deployment
SUPABASE_URL_PLACEHOLDER = "https://<project>.supabase.co"

class Settings(BaseSettings):
    PROJECT_NAME: str = "Dog Walking Bookings"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"

    # Supabase
    SUPABASE_URL: str = SUPABASE_URL_PLACEHOLDER
    SUPABASE_KEY: str = ""
    SUPABASE_TIMEOUT: float = 10.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/errors.log"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
