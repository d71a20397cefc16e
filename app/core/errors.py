from enum import Enum
from typing import Optional


class AddonError(Exception):
    """Base class for errors raised inside the addon."""


class ConfigError(AddonError):
    """Missing or placeholder TorBox credential."""


class NotFoundError(AddonError):
    """Unknown episode, or an episode without a torrent."""

    def __init__(self, label: str, detail: str):
        super().__init__(detail)
        self.label = label
        self.detail = detail


class UpstreamErrorKind(str, Enum):
    HTTP = "http"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    MALFORMED = "malformed"


class UpstreamError(AddonError):
    """
    Failure talking to the debrid service.
    Carries the upstream status code when the service answered at all.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        kind: UpstreamErrorKind = UpstreamErrorKind.HTTP,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.kind = kind

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message
