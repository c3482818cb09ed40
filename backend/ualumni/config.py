"""Application settings and validation."""

import os
from urllib.parse import urlparse


class Settings:
    ENV: str
    DATABASE_URL: str
    DB_TIMEOUT_SECONDS: float
    LOG_LEVEL: str
    PASSWORD_HASH_ROUNDS: int
    SMTP_HOST: str
    SMTP_PORT: int
    SMTP_USER: str
    SMTP_PASSWORD: str
    SMTP_USE_TLS: bool
    MAIL_FROM: str
    MAIL_TIMEOUT_SECONDS: float
    VERIFICATION_URL: str
    ALLOW_DEV_CORS: bool

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./ualumni.db")
        self.DB_TIMEOUT_SECONDS = float(os.getenv("DB_TIMEOUT_SECONDS", "15"))
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.PASSWORD_HASH_ROUNDS = int(os.getenv("PASSWORD_HASH_ROUNDS", "29000"))
        self.SMTP_HOST = os.getenv("SMTP_HOST", "localhost")
        self.SMTP_PORT = int(os.getenv("SMTP_PORT", "25"))
        self.SMTP_USER = os.getenv("SMTP_USER", "")
        self.SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
        self.SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "false").lower() == "true"
        self.MAIL_FROM = os.getenv("MAIL_FROM", "UAlumni <no-reply@ualumni.local>")
        self.MAIL_TIMEOUT_SECONDS = float(os.getenv("MAIL_TIMEOUT_SECONDS", "10"))
        self.VERIFICATION_URL = os.getenv("VERIFICATION_URL", "http://localhost:8000/alumni-to-verify/confirm")
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self._validate()

    def _validate(self):
        if self.PASSWORD_HASH_ROUNDS < 1000:
            raise RuntimeError("PASSWORD_HASH_ROUNDS must be at least 1000")
        if self.DB_TIMEOUT_SECONDS <= 0 or self.MAIL_TIMEOUT_SECONDS <= 0:
            raise RuntimeError("timeouts must be positive")
        if self.ENV != "dev":
            host = urlparse(self.VERIFICATION_URL).hostname or ""
            if host in ("localhost", "127.0.0.1"):
                raise RuntimeError("VERIFICATION_URL must point to a public address in non-dev environments")
            if not self.MAIL_FROM.strip():
                raise RuntimeError("MAIL_FROM must be set in non-dev environments")


settings = Settings()
