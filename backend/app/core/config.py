from pathlib import Path
import sys

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_storage_root() -> Path:
    """Return the storage folder depending on the runtime (source vs PyInstaller)."""
    if getattr(sys, "frozen", False):
        # When bundled with PyInstaller, keep data next to the executable.
        return Path(sys.executable).resolve().parent / "storage"
    return Path(__file__).resolve().parent.parent.parent / "storage"


class Settings(BaseSettings):
    """Configurazione centrale dell'applicazione."""

    app_name: str = "MT Dealer CRM Backend"
    api_v1_prefix: str = "/api/v1"
    debug: bool = False

    # Storage paths / database
    storage_root: Path = _default_storage_root()
    database_path: Path = Path("crm.sqlite")
    database_url: str | None = Field(
        default=None,
        description=(
            "SQLAlchemy URL (PostgreSQL raccomandato in produzione per concorrenza)."
        ),
    )
    db_pool_size: int = Field(default=10, description="Pool di connessioni DB (Postgres)")
    db_max_overflow: int = Field(
        default=20, description="Connessioni addizionali consentite oltre il pool"
    )

    # Upload documenti (bollette, carte d'identità)
    max_upload_size_mb: int = 20
    allowed_document_types: set[str] = {
        "application/pdf",
        "image/jpeg",
        "image/png",
        "image/webp",
    }

    cors_origins: list[str] | tuple[str, ...] | str | None = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )
    cors_allow_credentials: bool = True

    # JWT / auth
    jwt_secret_key: str = Field(
        default="change-me",
        description="Chiave segreta per la firma dei JWT - sovrascrivere in produzione",
    )
    jwt_algorithm: str = Field(default="HS256", description="Algoritmo JWT")
    access_token_expire_minutes: int = Field(
        default=60 * 8,
        description="Durata (minuti) del token di accesso (una giornata lavorativa)",
    )
    login_rate_limit_attempts: int = Field(
        default=5, description="Numero massimo tentativi di login per finestra"
    )
    login_rate_limit_window_seconds: int = Field(
        default=300, description="Finestra in secondi per rate limit login"
    )

    # Multi-tenant
    super_agency_id: str = Field(
        default="ag_mt",
        description="Agenzia HQ: i suoi amministratori vedono tutte le agenzie",
    )
    seed_agency_name: str = "MT Technology HQ"
    seed_agency_vat_number: str = "IT12345678901"
    seed_admin_username: str | None = Field(
        default="admin",
        description="Username dell'amministratore HQ creato automaticamente",
    )
    seed_admin_password: str | None = Field(
        default="password",
        description="Password iniziale dell'amministratore seed (solo ambienti demo/sviluppo)",
    )
    seed_admin_full_name: str = "Super Admin MT"

    # Riconciliazione
    conflict_scan_include_inactive: bool = Field(
        default=True,
        description=(
            "Il controllo conflitti POD/PDR considera anche immobili SOLD/OBSOLETE"
        ),
    )
    audit_log_retention: int = Field(
        default=500,
        description="Numero di voci di audit restituite per agenzia",
    )

    # Estrazione documenti (Gemini)
    gemini_api_key: str | None = Field(default=None, description="API key Google Gemini")
    gemini_model: str = "gemini-2.0-flash"
    gemini_endpoint: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout: float = 120.0

    # Logging e observability
    structured_logging: bool = Field(
        default=True,
        description="Emette log JSON per integrazione con SIEM/ELK",
    )
    log_level: str = Field(default="INFO", description="Livello di log applicativo")

    model_config = SettingsConfigDict(
        env_prefix="CRM_", env_file=".env", extra="ignore"
    )

    @property
    def effective_database_url(self) -> str:
        """Preferisce un URL Postgres fornito via env, con fallback SQLite per sviluppo."""

        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.storage_root / self.database_path}"

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_cors_origins(
        cls,
        value: str | list[str] | tuple[str, ...] | None,
    ) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            if not value.strip():
                return []
            return [item.strip() for item in value.split(",") if item.strip()]
        return list(value)


settings = Settings()

# Assicura che la cartella storage esista (per il database SQLite)
settings.storage_root.mkdir(parents=True, exist_ok=True)
