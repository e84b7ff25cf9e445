"""
Engine construction for the control and target databases.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url


@dataclass
class DatabaseEngines:
    """
    The administrative engine used to list/create databases, and the engine
    scoped to the database being ensured. Never the same object.
    """

    control: Engine
    target: Engine
    database_name: str

    def __post_init__(self):
        if self.control is self.target:
            raise ValueError("Control and target engines must be distinct")


def target_database_name(database_url: str) -> str:
    name = make_url(database_url).database
    if not name:
        raise ValueError("DATABASE_URL does not name a database")
    return name


def create_control_engine(admin_database_url: str) -> Engine:
    if not admin_database_url:
        raise ValueError("ADMIN_DATABASE_URL is required to provision databases")
    # CREATE DATABASE cannot run inside a transaction block.
    return create_engine(
        admin_database_url,
        isolation_level="AUTOCOMMIT",
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=2,
    )


def create_target_engine(database_url: str) -> Engine:
    if not database_url:
        raise ValueError("DATABASE_URL is required")
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


def create_database_engines(database_url: str, admin_database_url: str) -> DatabaseEngines:
    return DatabaseEngines(
        control=create_control_engine(admin_database_url),
        target=create_target_engine(database_url),
        database_name=target_database_name(database_url),
    )
