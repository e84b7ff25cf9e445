"""
On-demand database provisioning.

Several replicas of the service may find the target database missing at the
same moment and all try to create it. Postgres cannot run ``CREATE DATABASE``
inside a transaction, so the existence check and the create are never atomic.
Instead of locking, a create that fails because the database already exists
is treated as a normal outcome.
"""

from __future__ import annotations

import enum
import logging
import re

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError

logger = logging.getLogger(__name__)

DATABASE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")

# SQLSTATE codes raised when the database name is already taken. Two racing
# creates can surface as a unique violation on pg_database_datname_index
# rather than duplicate_database.
DUPLICATE_DATABASE = "42P04"
UNIQUE_VIOLATION = "23505"
_ALREADY_EXISTS_CODES = frozenset({DUPLICATE_DATABASE, UNIQUE_VIOLATION})


class ProvisioningOutcome(enum.Enum):
    ALREADY_EXISTS = "already_exists"
    CREATED = "created"
    CREATE_RACED = "create_raced"


class ProvisioningError(RuntimeError):
    """Database provisioning failed for a reason other than a lost race."""


class InvalidDatabaseName(ProvisioningError, ValueError):
    pass


def validate_database_name(name: str) -> str:
    if not name or not DATABASE_NAME_PATTERN.match(name):
        raise InvalidDatabaseName(f"Invalid database name: {name!r}")
    return name


def sqlstate_of(exc: DBAPIError) -> str | None:
    """Return the SQLSTATE of a wrapped DBAPI error (psycopg 3 or psycopg2)."""
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_already_exists_error(exc: DBAPIError) -> bool:
    return sqlstate_of(exc) in _ALREADY_EXISTS_CODES


class DatabaseProvisioner:
    """
    Ensures databases exist using an administrative (control) engine.

    The control engine must not be the engine later used to query the
    provisioned database.
    """

    def __init__(self, control: Engine, target: Engine | None = None):
        if target is not None and control is target:
            raise ValueError("Control and target engines must be distinct")
        self.control = control

    def database_exists(self, name: str) -> bool:
        with self.control.connect() as conn:
            result = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": name},
            )
            return result.scalar() is not None

    def create_database(self, name: str) -> None:
        quoted = self.control.dialect.identifier_preparer.quote_identifier(name)
        with self.control.connect() as conn:
            conn = conn.execution_options(isolation_level="AUTOCOMMIT")
            conn.exec_driver_sql(f"CREATE DATABASE {quoted}")

    def ensure_database(self, name: str) -> ProvisioningOutcome:
        validate_database_name(name)
        try:
            if self.database_exists(name):
                logger.debug("Database %s already exists", name)
                return ProvisioningOutcome.ALREADY_EXISTS
        except DBAPIError as exc:
            raise ProvisioningError(
                f"Failed to check whether database {name} exists"
            ) from exc

        try:
            self.create_database(name)
        except DBAPIError as exc:
            if is_already_exists_error(exc):
                logger.info("Database %s was created concurrently", name)
                return ProvisioningOutcome.CREATE_RACED
            raise ProvisioningError(f"Failed to create database {name}") from exc

        logger.info("Created database %s", name)
        return ProvisioningOutcome.CREATED


def ensure_database(control: Engine, name: str) -> ProvisioningOutcome:
    return DatabaseProvisioner(control).ensure_database(name)
