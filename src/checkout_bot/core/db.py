"""Factory de sessão do SQLAlchemy 2."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

def create_session_factory(database_url: str, create_schema: bool = False):
    """Cria SessionFactory síncrona para SQLAlchemy 2.

    :param database_url: URL completa do banco (psycopg3 em produção, sqlite em testes).
    :param create_schema: cria as tabelas direto pelo metadata (sem alembic).
    :return: sessionmaker configurado.
    """
    if database_url.startswith("sqlite"):
        # sqlite em memória: uma conexão compartilhada entre sessões
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
    else:
        engine = create_engine(database_url, pool_pre_ping=True, future=True)
    if create_schema:
        from ..repo.models import Base
        Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
