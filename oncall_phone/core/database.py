# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Directory database engine: connection string and pooled async engine.

Two authentication modes:
  sql      UID/PWD credentials in the connection string
  windows  Trusted_Connection=yes, no credentials transmitted
"""

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from oncall_phone.core.config import Settings
from oncall_phone.core.logging import get_logger

logger = get_logger(__name__)

_ODBC_SPECIAL = set(";{}= ")


def _odbc_value(value: str) -> str:
    if any(ch in _ODBC_SPECIAL for ch in value):
        return "{" + value.replace("}", "}}") + "}"
    return value


def quote_table_name(table: str) -> str:
    """``dbo.PhoneDirectory`` → ``[dbo].[PhoneDirectory]``."""
    parts = [p.strip().strip("[]") for p in table.split(".")]
    if not parts or any(not p or "[" in p or "]" in p for p in parts):
        raise ValueError(f"Invalid directory table name: {table!r}")
    return ".".join(f"[{p}]" for p in parts)


def build_odbc_connection_string(config: Settings) -> str:
    """ODBC connection string for the configured auth mode (never logged)."""
    parts = [
        f"Driver={{{config.SQL_DRIVER}}}",
        f"Server={_odbc_value(config.SQL_SERVER)},{config.SQL_PORT}",
        f"Database={_odbc_value(config.SQL_DATABASE)}",
        f"Encrypt={'yes' if config.SQL_ENCRYPT else 'no'}",
        f"TrustServerCertificate={'yes' if config.SQL_TRUST_SERVER_CERT else 'no'}",
    ]
    if config.SQL_AUTH_MODE == "windows":
        parts.append("Trusted_Connection=yes")
    else:
        parts.append(f"UID={_odbc_value(config.SQL_USERNAME)}")
        parts.append(f"PWD={_odbc_value(config.SQL_PASSWORD)}")
    return ";".join(parts) + ";"


def build_directory_url(config: Settings) -> URL:
    return URL.create(
        "mssql+aioodbc",
        query={"odbc_connect": build_odbc_connection_string(config)},
    )


def describe_connection(config: Settings) -> dict[str, object]:
    """Redacted connection facts for logs and health output."""
    info: dict[str, object] = {
        "server": config.SQL_SERVER,
        "port": config.SQL_PORT,
        "database": config.SQL_DATABASE,
        "auth_mode": config.SQL_AUTH_MODE,
        "encrypt": config.SQL_ENCRYPT,
        "trust_server_cert": config.SQL_TRUST_SERVER_CERT,
    }
    if config.SQL_AUTH_MODE == "windows":
        info["domain"] = config.SQL_DOMAIN or "(default)"
    else:
        info["username"] = config.SQL_USERNAME or None
        info["password"] = "********" if config.SQL_PASSWORD else None
    return info


def create_directory_engine(config: Settings) -> AsyncEngine:
    """Pooled engine; at most DB_POOL_SIZE connections, callers wait when saturated."""
    logger.info(
        "Creating directory connection pool for %s:%s/%s (auth_mode=%s)",
        config.SQL_SERVER, config.SQL_PORT, config.SQL_DATABASE, config.SQL_AUTH_MODE,
        extra={"backend": "database"},
    )
    return create_async_engine(
        build_directory_url(config),
        pool_pre_ping=True,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=0,
        pool_timeout=config.DB_POOL_TIMEOUT,
        pool_recycle=config.DB_POOL_RECYCLE,
        connect_args={"timeout": config.SQL_CONNECT_TIMEOUT},
    )
