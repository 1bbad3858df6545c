"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales.
Soporta configuracion dinamica para desarrollo (ENVIRONMENT=development)
y produccion (ENVIRONMENT=production).
"""
import json
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.

    Configuracion de desarrollo vs produccion:
    - ENVIRONMENT: 'development' o 'production'
    - En desarrollo, sin CRON_SECRET, el trigger periodico no exige bearer
    - En produccion, sin CRON_SECRET, el trigger periodico rechaza todo
    - DATABASE_URL se puede especificar completa o por componentes
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Mentor Sync")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Base de datos - Componentes separados (recomendado para flexibilidad)
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="mentor_user")
    DATABASE_PASSWORD: str = Field(default="mentor_pass")
    DATABASE_NAME: str = Field(default="mentor_db")

    # Base de datos - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # CORS (acepta lista JSON o "*" para todos los origenes)
    CORS_ORIGINS: str = Field(default="*")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    # Airtable - autenticacion (se aceptan ambos nombres de variable)
    AIRTABLE_PERSONAL_ACCESS_TOKEN: str = Field(default="")
    AIRTABLE_API_KEY: str = Field(default="")
    AIRTABLE_BASE_ID: str = Field(default="")
    AIRTABLE_MENTORS_TABLE_ID: str = Field(default="")
    AIRTABLE_API_URL: str = Field(default="https://api.airtable.com/v0")

    # Airtable - webhook entrante (HMAC-SHA256 base64)
    AIRTABLE_WEBHOOK_SECRET: str = Field(default="")

    # Airtable - limites. 200 ms entre requests ~= 5 req/s por base.
    AIRTABLE_MIN_REQUEST_INTERVAL_MS: int = Field(default=200)
    AIRTABLE_TIMEOUT_S: float = Field(default=30.0)
    AIRTABLE_MAX_RATE_LIMIT_RETRIES: int = Field(default=3)
    AIRTABLE_SYNC_BATCH_SIZE: int = Field(default=50)
    # Items en processing sin avance por mas de esto se consideran huerfanos
    AIRTABLE_OUTBOX_STALE_AFTER_MINUTES: int = Field(default=15)

    # Trigger periodico (cron) - bearer compartido
    CRON_SECRET: str = Field(default="")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL esta definida, la usa directamente.
        Si no, construye la URL desde los componentes individuales.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    @computed_field
    @property
    def is_production(self) -> bool:
        """Indica si el entorno es de produccion."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def airtable_token(self) -> str:
        """Token efectivo de Airtable (PAT tiene prioridad sobre API key)."""
        return self.AIRTABLE_PERSONAL_ACCESS_TOKEN or self.AIRTABLE_API_KEY

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuracion de CORS.
    Acepta "*" para todos los origenes o una lista JSON.
    """
    if cors_string == "*":
        return ["*"]
    try:
        return json.loads(cors_string)
    except json.JSONDecodeError:
        # Si no es JSON valido, retornar como lista simple
        return [origin.strip() for origin in cors_string.split(",")]


# Instancia global de configuracion
settings = Settings()
