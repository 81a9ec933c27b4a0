# storefront/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront.utils.settings import DATABASE_URL

Base = declarative_base()


def make_engine(url: str | None = None):
    url = url or DATABASE_URL
    # sqlite w pamieci - jedna wspoldzielona baza dla calego procesu
    if url.startswith("sqlite") and ":memory:" in url:
        from sqlalchemy.pool import StaticPool

        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url)


def make_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
