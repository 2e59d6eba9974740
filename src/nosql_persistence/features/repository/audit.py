"""Who and where a write comes from."""

from typing import Optional, Protocol, runtime_checkable

from ...config.settings import get_settings


@runtime_checkable
class AuditContext(Protocol):
    """Supplies the identity and time zone stamped on audited writes."""

    def current_user(self) -> str:
        ...

    def current_time_zone(self) -> str:
        ...


class StaticAuditContext:
    """Audit context with fixed values, defaulting to the configured system user."""

    def __init__(self, user: Optional[str] = None, time_zone: Optional[str] = None):
        settings = get_settings()
        self.user = user or settings.system_user
        self.time_zone = time_zone or settings.default_time_zone

    def current_user(self) -> str:
        return self.user

    def current_time_zone(self) -> str:
        return self.time_zone
