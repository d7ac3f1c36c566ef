from typing import Any, Iterable, Optional


class DashboardError(Exception):
    """Base class for errors raised by the dashboard backend."""


class ParseError(DashboardError, ValueError):
    """A spreadsheet cell could not be read as the expected kind."""

    def __init__(self, value: Any, kind: str):
        self.value = value
        self.kind = kind
        super().__init__(f"Cannot parse {value!r} as {kind}")


class SchemaMismatch(DashboardError):
    """A sheet's header row does not carry the columns its schema expects."""

    def __init__(self, sheet: str, missing: Iterable[str]):
        self.sheet = sheet
        self.missing = list(missing)
        super().__init__(
            f"Sheet '{sheet}' is missing expected columns: {', '.join(self.missing)}"
        )


class UpstreamError(DashboardError):
    """An external API (Sheets, Monday.com, Slack) failed or answered badly."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        self.service = service
        self.message = message
        self.status_code = status_code
        detail = f"{service} error"
        if status_code is not None:
            detail += f" ({status_code})"
        super().__init__(f"{detail}: {message}")


class ConfigurationError(DashboardError):
    """A required environment setting is missing or unusable."""

    def __init__(self, setting: str, reason: str = "is not configured"):
        self.setting = setting
        super().__init__(f"{setting} {reason}")
