import os
from dotenv import load_dotenv
from urllib.parse import quote_plus

load_dotenv()

class Settings:
    # Environment setting
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    # Supabase project (storage downloads use the service role key)
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    SUPABASE_STORAGE_BUCKET = os.getenv("SUPABASE_STORAGE_BUCKET", "voice-recordings")

    # OpenAI API KEY (Whisper transcription)
    openai_api_key: str = os.getenv("OPENAI_API_KEY")
    WHISPER_MODEL = os.getenv("WHISPER_MODEL", "whisper-1")

    # Twilio
    TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
    TWILIO_FROM_NUMBER = os.getenv("TWILIO_FROM_NUMBER")
    TWILIO_API_BASE_URL = os.getenv("TWILIO_API_BASE_URL", "https://api.twilio.com")

    # Fitbit
    FITBIT_ACCESS_TOKEN = os.getenv("FITBIT_ACCESS_TOKEN")
    FITBIT_VERIFICATION_CODE = os.getenv("FITBIT_VERIFICATION_CODE")
    FITBIT_API_BASE_URL = os.getenv("FITBIT_API_BASE_URL", "https://api.fitbit.com")

    # Ingestion tuning
    DEVICE_DUPLICATE_WINDOW_MINUTES = int(os.getenv("DEVICE_DUPLICATE_WINDOW_MINUTES", "60"))
    HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

    # Shared secret for the outbound integration endpoints (unset = auth bypassed)
    RELAY_API_KEY = os.getenv("RELAY_API_KEY")

    LOG_DIR = os.getenv("LOG_DIR", "logs")

    # db creds
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")
    DB_NAME = os.getenv("DB_NAME", "postgres")
    DB_PORT = os.getenv("DB_PORT", "5432")

    # Build URL with SSL requirement based on environment
    def _build_database_url(self):
        explicit_url = os.getenv("DATABASE_URL")
        if explicit_url:
            return explicit_url
        base_url = f"postgresql+asyncpg://{self.DB_USER}:{quote_plus(self.DB_PASSWORD)}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        if self.ENVIRONMENT == "development":
            return base_url
        return f"{base_url}?ssl=require"

    @property
    def DATABASE_URL(self):
        return self._build_database_url()

    @property
    def twilio_configured(self) -> bool:
        return bool(self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN and self.TWILIO_FROM_NUMBER)

settings = Settings()
