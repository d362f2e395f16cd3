from dataclasses import dataclass
from typing import List, Optional, Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict

from storefront.core.exceptions import ConfigurationError

# Hosts the frontend/containers use to reach the API internally. Image URLs
# pointing at them must never leak into what customers see.
INTERNAL_HOSTS = ("backend", "localhost", "127.0.0.1", "0.0.0.0")
INTERNAL_PORT = 5000


class Settings(BaseSettings):
    # --- Application ---
    PROJECT_NAME: str = "Storefront"
    APP_ENV: str = "development"  # development, staging, production
    PORT: int = 5000
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    CORS_ORIGINS: List[str] = ["*"]

    # --- Database ---
    DATABASE_URL: str = "sqlite:///./storefront.db"
    DB_CONNECT_RETRIES: int = 10
    DB_CONNECT_WAIT_SECONDS: float = 3.0

    # --- Auth ---
    JWT_SECRET: str = "change-me"
    JWT_EXPIRES_IN: str = "1d"

    # --- Mail (all optional here, validated by the dispatcher) ---
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: Optional[int] = None
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_SECURE: bool = False
    SMTP_CONNECTION_TIMEOUT: float = 10.0
    SMTP_GREETING_TIMEOUT: float = 10.0  # EHLO exchange; the banner is read within the connection timeout
    SMTP_SOCKET_TIMEOUT: float = 30.0
    EMAIL_FROM: Optional[str] = None
    EMAIL_TO: Optional[str] = None

    # --- Public URLs & images ---
    PUBLIC_URL: Optional[str] = None
    PRODUCTION_URL: str = "https://gelionaqua.ru"
    STAGING_URL: str = "https://staging.gelionaqua.ru"
    FALLBACK_IMAGE_URL: Optional[str] = None
    IMAGES_DIR: str = "public/images"

    # --- Order notification ---
    TIMEZONE: str = "Europe/Moscow"
    CURRENCY_SUFFIX: str = "₽"
    ORDER_SPREADSHEET_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    @property
    def public_url(self) -> str:
        """Public base URL of the shop, explicit or derived from APP_ENV."""
        if self.PUBLIC_URL:
            return self.PUBLIC_URL.rstrip("/")
        if self.APP_ENV == "production":
            return self.PRODUCTION_URL.rstrip("/")
        if self.APP_ENV == "staging":
            return self.STAGING_URL.rstrip("/")
        return f"http://localhost:{self.PORT}"

    def image_urls(self) -> "ImageUrlConfig":
        public_url = self.public_url
        prefixes = [f"http://{host}:{INTERNAL_PORT}" for host in INTERNAL_HOSTS]
        if self.PORT != INTERNAL_PORT:
            prefixes.append(f"http://backend:{self.PORT}")
        return ImageUrlConfig(
            public_url=public_url,
            fallback_image=self.FALLBACK_IMAGE_URL or f"{public_url}/images/default-product.jpg",
            internal_prefixes=tuple(prefixes),
        )


@dataclass(frozen=True)
class ImageUrlConfig:
    public_url: str
    fallback_image: str
    internal_prefixes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MailTransportConfig:
    host: str
    port: int
    use_tls: bool
    username: str
    password: str
    sender: str
    recipient: str
    connection_timeout: float
    greeting_timeout: float
    socket_timeout: float

    @classmethod
    def from_settings(cls, settings: Settings) -> "MailTransportConfig":
        """
        Builds the transport config, failing fast when a required field is missing.
        Raises ConfigurationError listing every missing variable.
        """
        required = {
            "SMTP_HOST": settings.SMTP_HOST,
            "SMTP_PORT": settings.SMTP_PORT,
            "SMTP_USER": settings.SMTP_USER,
            "SMTP_PASS": settings.SMTP_PASS,
            "EMAIL_FROM": settings.EMAIL_FROM,
            "EMAIL_TO": settings.EMAIL_TO,
        }
        missing = [name for name, value in required.items() if value in (None, "")]
        if missing:
            raise ConfigurationError(f"Mail transport is not configured, missing: {', '.join(missing)}")

        return cls(
            host=settings.SMTP_HOST,
            port=int(settings.SMTP_PORT),
            use_tls=settings.SMTP_SECURE,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASS,
            sender=settings.EMAIL_FROM,
            recipient=settings.EMAIL_TO,
            connection_timeout=settings.SMTP_CONNECTION_TIMEOUT,
            greeting_timeout=settings.SMTP_GREETING_TIMEOUT,
            socket_timeout=settings.SMTP_SOCKET_TIMEOUT,
        )
