"""Application configuration"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "BlissLearn"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # database
    DATABASE_URL: str = "sqlite:///./blisslearn.db"
    DB_ECHO: bool = False
    DB_RETRY_MAX_ATTEMPTS: int = 3
    DB_RETRY_DELAY_SECONDS: float = 1.0

    # JWT
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # トークン有効期限
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 24

    # 保持期間
    NOTIFICATION_RETENTION_DAYS: int = 15
    UNVERIFIED_ACCOUNT_RETENTION_DAYS: int = 7

    # 管理用シークレット（未設定なら管理エンドポイントは常に401）
    CLEANUP_SECRET: str = ""
    CLEANUP_API_KEY: str = ""

    # Email
    RESEND_API_KEY: str = ""
    RESEND_FROM_EMAIL: str = "BlissLearn <onboarding@resend.dev>"

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://frontend:3000",
    ]

    # レート制限
    RATE_LIMIT_ENABLED: bool = True
    FORGOT_PASSWORD_RATE_LIMIT: str = "5/5minute"
    RESEND_VERIFICATION_RATE_LIMIT: str = "3/5minute"

    # バッチ
    SCHEDULER_ENABLED: bool = False
    NOTIFICATION_CLEANUP_INTERVAL_HOURS: int = 24
    UNVERIFIED_CLEANUP_INTERVAL_HOURS: int = 24

    # キャッシュ
    COURSE_FILTERS_CACHE_TTL: int = 10 * 60

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )


settings = Settings()
