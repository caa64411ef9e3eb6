from app.db.session import Base, get_db, get_engine, get_sessionmaker

__all__ = ["Base", "get_db", "get_engine", "get_sessionmaker"]
