import logging
import threading

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class DatabaseUnavailable(Exception):
    """Il database non risponde (connessione non stabilita o persa)."""


def normalize_url(url: str) -> str:
    # Correzione automatica per compatibilità (Heroku/Render usano ancora postgres://)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


class Database:
    """
    Connessione al database creata alla prima richiesta e poi riutilizzata.

    Se il primo tentativo fallisce il motore non viene memorizzato, quindi la
    richiesta successiva riprova. pool_pre_ping scarta le connessioni morte.
    """

    def __init__(self, url, pool_size=5, max_overflow=10, pool_recycle=300):
        self.url = normalize_url(url)
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_recycle = pool_recycle
        self._engine = None
        self._sessionmaker = None
        self._lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self._engine is not None

    def _engine_options(self) -> dict:
        if self.url.startswith("sqlite"):
            options = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in self.url or self.url in ("sqlite://", "sqlite:///"):
                # una sola connessione condivisa, altrimenti ogni sessione vede un DB vuoto
                options["poolclass"] = StaticPool
            return options
        return {
            "pool_pre_ping": True,  # Controlla se la connessione è viva prima di usarla
            "pool_recycle": self.pool_recycle,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
        }

    def connect(self):
        if self._engine is not None:
            logger.debug("Using cached database connection")
            return self._engine

        # le route sync girano nel threadpool: un solo thread crea il motore
        with self._lock:
            if self._engine is None:
                self._create_engine()
        return self._engine

    def _create_engine(self):
        logger.info("Connessione al database in corso...")
        try:
            engine = create_engine(self.url, **self._engine_options())
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"❌ Connessione al database fallita: {e}")
            raise DatabaseUnavailable(str(e)) from e

        self._engine = engine
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info(f"✅ Connesso al database ({engine.url.get_backend_name()})")

    @property
    def engine(self):
        return self.connect()

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def session(self):
        self.connect()
        return self._sessionmaker()

    def dispose(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
