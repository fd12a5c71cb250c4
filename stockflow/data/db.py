import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from stockflow.adapters.outbound.sqlalchemy_models import Base

# Relative sqlite paths resolve from the stockflow package directory
_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_DEFAULT_DB = os.path.join(_PACKAGE_DIR, "data", "stockflow.db")


def resolve_url(url: str | None = None) -> str:
    db_url = url or os.environ.get("DATABASE_URL", f"sqlite:///{_DEFAULT_DB}")
    if db_url.startswith("sqlite:///") and not db_url.startswith("sqlite:////"):
        rel_path = db_url.replace("sqlite:///", "")
        if rel_path and rel_path != ":memory:" and not os.path.isabs(rel_path):
            abs_path = os.path.join(_PACKAGE_DIR, rel_path)
            os.makedirs(os.path.dirname(abs_path), exist_ok=True)
            db_url = f"sqlite:///{abs_path}"
    return db_url


def get_engine(url: str | None = None):
    return create_engine(resolve_url(url), echo=False)


def init_db(engine=None):
    if engine is None:
        engine = get_engine()
    Base.metadata.create_all(engine)
    return engine


def get_session(engine=None):
    if engine is None:
        engine = get_engine()
    Session = sessionmaker(bind=engine)
    return Session()
