# Database configuration and session management
from .base import Base
from .session import create_engine, create_session_maker

__all__ = ["Base", "create_engine", "create_session_maker"]
