# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration: all env-driven, zero hardcode.
Single source of truth for every tunable parameter.
"""

import os
from typing import Any

DEFAULT_TEAM_MAPPING: dict[str, str] = {
    "helpdesk": "Help-Desk-schedule",
    "network": "Network-schedule",
    "ibmi": "IBM-i-schedule",
    "windows": "Windows-schedule",
    "sql": "SQL-schedule",
    "sharepoint": "SharePoint-schedule",
}

# Fixed freshness windows, not env-tunable
SCHEDULE_CACHE_SECONDS: float = 15 * 60
DIRECTORY_CACHE_SECONDS: float = 60 * 60


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


def _parse_team_mapping(raw: str | None) -> dict[str, str]:
    """Parse ``key=Rotation Name,key2=Other`` into a mapping."""
    if not raw:
        return dict(DEFAULT_TEAM_MAPPING)
    mapping: dict[str, str] = {}
    for pair in raw.split(","):
        if "=" not in pair:
            continue
        key, name = pair.split("=", 1)
        if key.strip() and name.strip():
            mapping[key.strip().lower()] = name.strip()
    return mapping


def _profile_url() -> str:
    explicit = os.getenv("ROSTER_PROFILE_URL", "").strip()
    if explicit:
        return explicit
    domain = os.getenv("ROSTER_SITE_DOMAIN", "").strip()
    return f"https://{domain}/rest/api/3/user" if domain else ""


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "oncall-phone-lookup")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", os.getenv("PORT", "3100")))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")

    # ── Roster (schedule) service ──
    ROSTER_HOST_URL: str = os.getenv("ROSTER_HOST_URL", "").rstrip("/")
    ROSTER_BASE_PATH: str = os.getenv("ROSTER_BASE_PATH", "").strip("/")
    ROSTER_TENANT_ID: str = os.getenv("ROSTER_TENANT_ID", "")
    ROSTER_USERNAME: str = os.getenv("ROSTER_USERNAME", "")
    ROSTER_API_TOKEN: str = os.getenv("ROSTER_API_TOKEN", "")
    ROSTER_PROFILE_URL: str = _profile_url()
    ROSTER_CONNECT_TIMEOUT: float = float(os.getenv("ROSTER_CONNECT_TIMEOUT", "10.0"))
    ROSTER_READ_TIMEOUT: float = float(os.getenv("ROSTER_READ_TIMEOUT", "30.0"))

    # ── Directory backend ──
    DIRECTORY_BACKEND: str = (
        "file"
        if _flag("USE_TEMP_FILE")
        else os.getenv("DIRECTORY_BACKEND", "database").strip().lower()
    )
    TEMP_FILE: str = os.getenv("TEMP_FILE", "phone-list.csv")

    SQL_SERVER: str = os.getenv("SQL_SERVER", "localhost")
    SQL_PORT: int = int(os.getenv("SQL_PORT", "1433"))
    SQL_DATABASE: str = os.getenv("SQL_DATABASE", "")
    SQL_TABLE: str = os.getenv("SQL_TABLE", "dbo.PhoneDirectory")
    SQL_AUTH_MODE: str = os.getenv("SQL_AUTH_MODE", "sql").strip().lower()
    SQL_USERNAME: str = os.getenv("SQL_USERNAME", "")
    SQL_PASSWORD: str = os.getenv("SQL_PASSWORD", "")
    SQL_DOMAIN: str = os.getenv("SQL_DOMAIN", "")
    SQL_ENCRYPT: bool = _flag("SQL_ENCRYPT")
    SQL_TRUST_SERVER_CERT: bool = _flag("SQL_TRUST_SERVER_CERT")
    SQL_DRIVER: str = os.getenv("SQL_DRIVER", "ODBC Driver 18 for SQL Server")
    SQL_CONNECT_TIMEOUT: int = int(os.getenv("SQL_CONNECT_TIMEOUT", "15"))

    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_POOL_TIMEOUT: float = float(os.getenv("DB_POOL_TIMEOUT", "30"))
    DB_POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "1800"))

    # ── Lookup behaviour ──
    DEFAULT_PHONE_NUMBER: str = os.getenv("DEFAULT_PHONE_NUMBER", "15555555555")
    TEAM_MAPPING: dict[str, str] = _parse_team_mapping(os.getenv("TEAM_MAPPING"))
    MAX_RECENT_ERRORS: int = int(os.getenv("MAX_RECENT_ERRORS", "10"))

    # ── Derived views ──

    @property
    def roster_configured(self) -> bool:
        return all(
            (self.ROSTER_HOST_URL, self.ROSTER_BASE_PATH,
             self.ROSTER_TENANT_ID, self.ROSTER_API_TOKEN)
        )

    @property
    def sql_configured(self) -> bool:
        """True when the database backend has enough to attempt a connection."""
        if not (self.SQL_SERVER and self.SQL_DATABASE):
            return False
        if self.SQL_AUTH_MODE == "windows":
            return True
        return bool(self.SQL_USERNAME and self.SQL_PASSWORD)

    def missing_settings(self) -> list[str]:
        """Names of required environment variables that are unset."""
        required = {
            "ROSTER_HOST_URL": self.ROSTER_HOST_URL,
            "ROSTER_BASE_PATH": self.ROSTER_BASE_PATH,
            "ROSTER_TENANT_ID": self.ROSTER_TENANT_ID,
            "ROSTER_API_TOKEN": self.ROSTER_API_TOKEN,
            "ROSTER_PROFILE_URL": self.ROSTER_PROFILE_URL,
        }
        if self.DIRECTORY_BACKEND == "file":
            required["TEMP_FILE"] = self.TEMP_FILE
        else:
            required["SQL_SERVER"] = self.SQL_SERVER
            required["SQL_DATABASE"] = self.SQL_DATABASE
            if self.SQL_AUTH_MODE != "windows":
                required["SQL_USERNAME"] = self.SQL_USERNAME
                required["SQL_PASSWORD"] = self.SQL_PASSWORD
        return [name for name, value in required.items() if not value]

    def config_warnings(self) -> list[str]:
        """Non-fatal configuration problems worth logging at startup."""
        warnings: list[str] = []
        if self.DIRECTORY_BACKEND not in ("database", "file"):
            warnings.append(
                f"Invalid DIRECTORY_BACKEND '{self.DIRECTORY_BACKEND}', using database"
            )
        if self.SQL_AUTH_MODE not in ("sql", "windows"):
            warnings.append(
                f"Invalid SQL_AUTH_MODE '{self.SQL_AUTH_MODE}'. Valid values are 'sql' or 'windows'"
            )
        if self.SQL_AUTH_MODE == "windows" and not self.SQL_DOMAIN:
            warnings.append(
                "SQL_DOMAIN not set for Windows authentication - this may be required in some environments"
            )
        if not self.TEAM_MAPPING:
            warnings.append("TEAM_MAPPING is empty; no team endpoints will be registered")
        return warnings

    def summary(self) -> dict[str, Any]:
        """Redacted configuration view for the startup log."""

        def mark(value: Any) -> str:
            return "✓" if value else "✗"

        sql: dict[str, Any] = {
            "auth_mode": self.SQL_AUTH_MODE,
            "server": self.SQL_SERVER,
            "database": self.SQL_DATABASE,
            "port": self.SQL_PORT,
            "table": self.SQL_TABLE,
            "encrypt": self.SQL_ENCRYPT,
            "trust_server_cert": self.SQL_TRUST_SERVER_CERT,
        }
        if self.SQL_AUTH_MODE == "windows":
            sql["domain"] = self.SQL_DOMAIN or "(default)"
        else:
            sql["username"] = mark(self.SQL_USERNAME)
            sql["password"] = mark(self.SQL_PASSWORD)
        return {
            "service": {"name": self.SERVICE_NAME, "port": self.SERVICE_PORT},
            "roster": {
                "host_url": mark(self.ROSTER_HOST_URL),
                "base_path": mark(self.ROSTER_BASE_PATH),
                "tenant_id": mark(self.ROSTER_TENANT_ID),
                "username": mark(self.ROSTER_USERNAME),
                "api_token": mark(self.ROSTER_API_TOKEN),
                "profile_url": mark(self.ROSTER_PROFILE_URL),
            },
            "directory": {
                "backend": self.DIRECTORY_BACKEND,
                "temp_file": self.TEMP_FILE,
                "sql": sql,
            },
            "teams": sorted(self.TEAM_MAPPING),
        }


settings = Settings()
