# storefront/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def make_session_factory(url: str) -> tuple[Engine, sessionmaker]:
    # sqlite connections are shared with the FastAPI threadpool
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, connect_args=connect_args)
    factory = sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )
    return engine, factory


def init_db(engine: Engine) -> None:
    # models have to be imported before create_all so Base.metadata knows them
    from storefront.data import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
