"""Configuration management for the invoice import tool."""

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

logger = logging.getLogger(__name__)


class ColumnHeadersConfig(BaseModel):
    """Spreadsheet header names for each imported field."""

    invoice: str = Field(default="invoice", description="Invoice grouping key header")
    invoice_date: str = Field(default="Invoice Date", description="Invoice date header")
    customer_name: str = Field(default="Customer Name", description="Customer name header")
    customer_address: str = Field(
        default="Customer Address", description="Customer address header"
    )
    product_name: str = Field(default="Product Name", description="Product name header")
    # Source workbooks ship with this spelling.
    quantity: str = Field(default="Qyantity", description="Quantity header")
    price: str = Field(default="Price", description="Unit price header")
    total: str = Field(default="Total", description="Line total header")
    grand_total: str = Field(default="Grand Total", description="Invoice grand total header")

    model_config = {"extra": "ignore"}


class ImportConfig(BaseSettings):
    """Configuration for invoice import and query."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite:///var/database.sqlite",
        description="SQLAlchemy database URL",
    )

    sql_echo: bool = Field(
        default=False,
        description="Log every SQL statement emitted by SQLAlchemy",
    )

    date_format: str = Field(
        default="%Y-%m-%d",
        description="strptime format accepted for text invoice dates",
    )

    column_headers: ColumnHeadersConfig = Field(
        default_factory=ColumnHeadersConfig,
        description="Spreadsheet header names",
    )

    api_host: str = Field(
        default="0.0.0.0",
        description="API host address",
    )

    api_port: int = Field(
        default=8000,
        description="API port",
    )

    @field_validator("date_format")
    @classmethod
    def validate_date_format(cls, v: str) -> str:
        """Require at least one strptime directive."""
        if "%" not in v:
            raise ValueError(
                f"Invalid date format: '{v}'. Use strptime directives (e.g. %Y-%m-%d)."
            )
        return v

    def sqlite_database_path(self) -> Optional[Path]:
        """Return the file path of a file-backed SQLite database, if any."""
        url = make_url(self.database_url)
        if url.get_backend_name() != "sqlite":
            return None
        if not url.database or url.database == ":memory:":
            return None
        return Path(url.database)

    def ensure_database_dir(self) -> Optional[Path]:
        """Ensure the directory holding a SQLite database file exists."""
        db_path = self.sqlite_database_path()
        if db_path is None:
            return None
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return db_path

    def validate_config(self) -> None:
        """Validate configuration at startup. Raises ValueError if invalid."""
        errors = []

        if not self.database_url.strip():
            errors.append("DATABASE_URL cannot be empty")
        else:
            try:
                make_url(self.database_url)
            except ArgumentError as e:
                errors.append(f"DATABASE_URL is not a valid SQLAlchemy URL: {e}")

        headers = self.column_headers.model_dump()
        empty = sorted(name for name, header in headers.items() if not header.strip())
        if empty:
            errors.append(f"Column headers cannot be empty: {', '.join(empty)}")

        values = [header for header in headers.values() if header.strip()]
        if len(values) != len(set(values)):
            errors.append("Column headers must be distinct")

        if errors:
            raise ValueError(
                "Configuration validation failed:\n"
                + "\n".join(f"  - {e}" for e in errors)
            )


_config_instance = None


def get_config() -> ImportConfig:
    """Get or create global configuration instance."""
    global _config_instance
    if _config_instance is None:
        _config_instance = ImportConfig()
        _config_instance.validate_config()
        logger.info("Configuration validated successfully")
    return _config_instance


def reload_config() -> ImportConfig:
    """Reload configuration (useful for testing)."""
    global _config_instance
    _config_instance = ImportConfig()
    return _config_instance
