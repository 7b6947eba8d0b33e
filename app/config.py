from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # ─── Application ───────────────────────────────────────────────────────────
    APP_NAME: str = "Maintenance Ticketing System"
    APP_ENV:  str = "development"
    APP_DEBUG: bool = True
    APP_HOST:  str = "0.0.0.0"
    APP_PORT:  int = 8000
    LOG_LEVEL: str = "INFO"
    APP_BASE_URL: str = "http://localhost:3000"

    # ─── Database ──────────────────────────────────────────────────────────────
    DATABASE_URL:          str
    DATABASE_POOL_SIZE:    int  = 10
    DATABASE_MAX_OVERFLOW: int  = 20
    DATABASE_POOL_TIMEOUT: int  = 30
    DATABASE_ECHO:         bool = False

    # ─── JWT / Passwords ───────────────────────────────────────────────────────
    SECRET_KEY:               str
    ALGORITHM:                str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS:            int = 12
    MIN_PASSWORD_LENGTH:      int = 6
    ALLOW_ADMIN_SELF_REGISTRATION: bool = False

    # ─── Default accounts ──────────────────────────────────────────────────────
    SEED_DEFAULT_USERS:    bool = True
    DEFAULT_USER_PASSWORD: str  = "123456"

    # ─── Uploads ───────────────────────────────────────────────────────────────
    UPLOAD_DIR:             str = "uploads"
    MAX_IMAGE_SIZE_MB:      int = 5
    MAX_IMAGES_PER_REQUEST: int = 5

    # ─── SMTP (leave SMTP_HOST empty to log e-mails instead of sending) ───────
    SMTP_HOST:     str  = ""
    SMTP_PORT:     int  = 587
    SMTP_USER:     str  = ""
    SMTP_PASSWORD: str  = ""
    SMTP_USE_TLS:  bool = True
    MAIL_FROM:     str  = "maintenance@company.com"

    # ─── Freshservice ──────────────────────────────────────────────────────────
    FRESHSERVICE_DOMAIN:  str   = ""
    FRESHSERVICE_API_KEY: str   = ""
    FRESHSERVICE_TIMEOUT: float = 10.0

    # ─── CORS ──────────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8000"

    def get_cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def max_image_size_bytes(self) -> int:
        return self.MAX_IMAGE_SIZE_MB * 1024 * 1024

    @property
    def freshservice_enabled(self) -> bool:
        return bool(self.FRESHSERVICE_DOMAIN and self.FRESHSERVICE_API_KEY)

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}


settings = Settings()
