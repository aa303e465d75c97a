from dataclasses import dataclass, field
import os
import logging
from typing import Optional, Tuple
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "y")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_list(name: str, default: str) -> Tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class AppConfig:
    """
    Configurações principais da aplicação.

    O banco pode ser configurado de três formas (em ordem de prioridade):
    DATABASE_URL (URL SQLAlchemy), DB_CONNECTION_STRING (string completa)
    ou credenciais separadas (DB_USER/DB_PASSWORD/DB_SERVER/DB_NAME).
    """
    database_url: str = ""
    db_connection_string: str = ""
    db_user: str = ""
    db_password: str = ""
    db_server: str = ""
    db_name: str = ""
    db_port: int = 1433
    db_driver: str = "ODBC Driver 18 for SQL Server"
    db_encrypt: bool = True
    db_trust_server_certificate: bool = True
    db_request_timeout_ms: int = 30000  # timeout das consultas no pool
    db_pool_max: int = 10  # máximo de conexões abertas
    db_connect_retry_seconds: float = 5.0  # intervalo fixo entre tentativas de conexão
    db_create_tables: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: Tuple[str, ...] = field(default=("http://localhost:3000",))
    env: str = "dev"  # "dev" ou "prod"
    log_level: str = "INFO"
    static_dir: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.env == "prod"

    @classmethod
    def load_from_env(cls) -> "AppConfig":
        """
        Carrega configuração a partir de variáveis de ambiente.
        Primeiro tenta carregar do arquivo .env, depois do ambiente do sistema.
        Levanta erro explícito se nenhuma forma de conexão ao banco for definida.
        """
        load_dotenv()

        database_url = os.getenv("DATABASE_URL", "").strip()
        db_connection_string = os.getenv("DB_CONNECTION_STRING", "").strip()
        db_server = os.getenv("DB_SERVER", "").strip()
        if not (database_url or db_connection_string or db_server):
            raise RuntimeError(
                "Configuração do banco ausente: defina DATABASE_URL, "
                "DB_CONNECTION_STRING ou DB_SERVER/DB_NAME/DB_USER/DB_PASSWORD."
            )

        env = os.getenv("ENV", "dev").lower()
        if env not in ("dev", "prod"):
            logger.warning(f"ENV inválido '{env}', usando 'dev' como padrão")
            env = "dev"

        static_dir = os.getenv("STATIC_DIR", "").strip() or None

        return cls(
            database_url=database_url,
            db_connection_string=db_connection_string,
            db_user=os.getenv("DB_USER", ""),
            db_password=os.getenv("DB_PASSWORD", ""),
            db_server=db_server,
            db_name=os.getenv("DB_NAME", ""),
            db_port=int(os.getenv("DB_PORT", "1433")),
            db_driver=os.getenv("DB_DRIVER", "ODBC Driver 18 for SQL Server"),
            db_encrypt=_env_bool("DB_ENCRYPT", True),
            db_trust_server_certificate=_env_bool("DB_TRUST_SERVER_CERTIFICATE", True),
            db_request_timeout_ms=int(os.getenv("DB_REQUEST_TIMEOUT_MS", "30000")),
            db_pool_max=int(os.getenv("DB_POOL_MAX", "10")),
            db_connect_retry_seconds=float(os.getenv("DB_CONNECT_RETRY_SECONDS", "5")),
            db_create_tables=_env_bool("DB_CREATE_TABLES", False),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            cors_origins=_env_list("CORS_ORIGINS", "http://localhost:3000"),
            env=env,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            static_dir=static_dir,
        )
