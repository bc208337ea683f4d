from .connection import Base, SessionLocal, build_engine, engine

__all__ = ["Base", "SessionLocal", "build_engine", "engine"]
