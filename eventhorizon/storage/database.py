import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Union
from urllib.parse import quote_plus

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..config import AppConfig

logger = logging.getLogger(__name__)

Base = declarative_base()


class DatabaseUnavailableError(RuntimeError):
    """
    O pool ainda não foi aberto (ou já foi fechado).
    """


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def build_database_url(config: AppConfig) -> Union[str, URL]:
    """
    Monta a URL de conexão a partir da configuração.

    Prioridade: DATABASE_URL, depois DB_CONNECTION_STRING, depois credenciais.
    Uma connection string ODBC (Server=...;Database=...) é repassada ao pyodbc
    via odbc_connect.
    """
    if config.database_url:
        return config.database_url

    if config.db_connection_string:
        conn_str = config.db_connection_string
        if "://" in conn_str:
            return conn_str
        lowered = conn_str.lower()
        if not conn_str.rstrip().endswith(";"):
            conn_str = conn_str.rstrip() + ";"
        if "encrypt=" not in lowered:
            conn_str += f"Encrypt={_yes_no(config.db_encrypt)};"
        if "trustservercertificate=" not in lowered:
            conn_str += f"TrustServerCertificate={_yes_no(config.db_trust_server_certificate)};"
        return "mssql+pyodbc:///?odbc_connect=" + quote_plus(conn_str)

    return URL.create(
        "mssql+pyodbc",
        username=config.db_user or None,
        password=config.db_password or None,
        host=config.db_server,
        port=config.db_port,
        database=config.db_name or None,
        query={
            "driver": config.db_driver,
            "Encrypt": _yes_no(config.db_encrypt),
            "TrustServerCertificate": _yes_no(config.db_trust_server_certificate),
        },
    )


def create_engine_from_config(config: AppConfig) -> Engine:
    """
    Cria um engine SQLAlchemy a partir da configuração.

    Para SQL Server, usa pool limitado a db_pool_max conexões, pool_pre_ping
    e timeout de consulta por conexão. SQLite fica reservado para dev/testes.
    """
    url = make_url(build_database_url(config))
    timeout_s = max(1, config.db_request_timeout_ms // 1000)

    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            # Banco em memória: uma única conexão compartilhada entre threads
            engine = create_engine(
                url,
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            engine = create_engine(url, echo=False, connect_args={"check_same_thread": False})
        logger.info("Engine SQLite criado")
        return engine

    engine = create_engine(
        url,
        echo=False,
        pool_pre_ping=True,  # Verifica conexões antes de usar
        pool_size=config.db_pool_max,
        max_overflow=0,
        pool_timeout=timeout_s,
    )

    if url.get_backend_name() == "mssql":
        @event.listens_for(engine, "connect")
        def _set_query_timeout(dbapi_connection, connection_record):
            # pyodbc: timeout em segundos aplicado a cada consulta
            dbapi_connection.timeout = timeout_s

    logger.info(
        f"Engine criado: url={url.render_as_string(hide_password=True)}, "
        f"pool_size={config.db_pool_max}, timeout_s={timeout_s}"
    )
    return engine


class Database:
    """
    Dono do pool de conexões durante a vida do processo.

    - start(): tenta conectar em background, repetindo a cada
      db_connect_retry_seconds até conseguir (nunca derruba o processo)
    - session(): sessão para uma requisição; DatabaseUnavailableError se não conectado
    - close(): interrompe as tentativas e fecha o pool
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.attempts = 0

    @property
    def is_connected(self) -> bool:
        return self._session_factory is not None

    @property
    def engine(self) -> Optional[Engine]:
        return self._engine

    def connect(self) -> bool:
        """
        Uma tentativa de abrir o pool. Retorna True em caso de sucesso.
        """
        if self.is_connected:
            return True

        self.attempts += 1
        try:
            engine = create_engine_from_config(self._config)
        except (SQLAlchemyError, ImportError, ValueError) as e:
            logger.error(
                f"Configuração de banco inválida: attempt={self.attempts}, "
                f"error={type(e).__name__}: {e}"
            )
            return False

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            if self._config.db_create_tables:
                if self._config.is_production:
                    logger.warning(
                        "⚠️  DB_CREATE_TABLES=true em produção! "
                        "Crie o schema do banco antes de subir o serviço."
                    )
                else:
                    logger.info("Criando tabelas automaticamente (modo dev/test)")
                    Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as e:
            logger.error(
                f"Falha ao conectar no banco: attempt={self.attempts}, "
                f"error={type(e).__name__}: {e}"
            )
            engine.dispose()
            return False

        with self._lock:
            if self._stop.is_set():
                # close() já rodou durante a tentativa: o pool não pode ficar órfão
                engine.dispose()
                logger.info("Conexão descartada: banco já foi fechado")
                return False
            self._engine = engine
            self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        logger.info(f"✅ Conectado ao banco: attempt={self.attempts}")
        return True

    def _connect_loop(self) -> None:
        delay = self._config.db_connect_retry_seconds
        while not self._stop.is_set():
            if self.connect():
                return
            logger.warning(f"Nova tentativa de conexão em {delay}s")
            self._stop.wait(delay)

    def start(self) -> None:
        """
        Inicia as tentativas de conexão em uma thread de background.
        """
        if self.is_connected or (self._thread is not None and self._thread.is_alive()):
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._connect_loop,
            name="db-connect",
            daemon=True,
        )
        self._thread.start()

    def wait_until_connected(self, timeout: Optional[float] = None) -> bool:
        if self._thread is not None:
            self._thread.join(timeout)
        return self.is_connected

    def ping(self) -> bool:
        """
        Verifica se o banco responde (usado no health check).
        """
        engine = self._engine
        if engine is None:
            return False
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database health check falhou: {e}")
            return False

    @contextmanager
    def session(self) -> Iterator[Session]:
        factory = self._session_factory
        if factory is None:
            raise DatabaseUnavailableError("Banco de dados indisponível")
        with factory() as session:
            yield session

    def close(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self._config.db_connect_retry_seconds + 1)
            self._thread = None
        with self._lock:
            engine = self._engine
            self._engine = None
            self._session_factory = None
        if engine is not None:
            engine.dispose()
            logger.info("Pool de conexões fechado")
