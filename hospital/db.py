from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import StoreUnavailable, TransactionStateError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base ORM per tutti i modelli."""
    pass


def make_engine(url: str, echo: bool = False) -> Engine:
    """
    Crea l'engine. Per SQLite in memoria serve una sola connessione condivisa,
    altrimenti ogni connessione vedrebbe un DB vuoto.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:"):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,  # le entità restituite restano leggibili dopo il commit
    )


@contextmanager
def db_session(factory: sessionmaker[Session]) -> Iterator[Session]:
    """
    Apre una sessione e la chiude sempre.
    Commit/rollback sono responsabilità di transaction().
    """
    session: Session = factory()
    try:
        yield session
    finally:
        session.close()


def _is_connectivity_error(exc: DBAPIError) -> bool:
    return isinstance(exc, (OperationalError, InterfaceError)) or exc.connection_invalidated


@contextmanager
def transaction(s: Session) -> Iterator[Session]:
    """
    Unità atomica sulla sessione passata:
    - begin all'ingresso
    - commit se tutto ok
    - rollback su qualsiasi eccezione, poi rilancia
    Gli errori di connettività arrivano al chiamante come StoreUnavailable.
    All'uscita le entità vengono staccate dalla sessione: il chiamante riceve
    copie già caricate che nessun rollback successivo può far scadere.
    """
    if s.in_transaction():
        raise TransactionStateError()

    s.begin()
    try:
        yield s
        s.commit()
    except DBAPIError as exc:
        s.rollback()
        if _is_connectivity_error(exc):
            logger.error("Store non raggiungibile, rollback eseguito: %s", exc.orig)
            raise StoreUnavailable(str(exc.orig)) from exc
        logger.warning("Errore del DB, rollback eseguito: %s", exc.orig)
        raise
    except Exception as exc:
        s.rollback()
        logger.warning("Transazione annullata (%s)", type(exc).__name__)
        raise
    finally:
        s.expunge_all()
