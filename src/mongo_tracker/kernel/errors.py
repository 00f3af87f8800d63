from __future__ import annotations

import re
from typing import Any


_ERROR_CODE_RE = re.compile(r"^[a-z][a-z0-9_]*(\.[a-z][a-z0-9_]*)*$")


class TrackerError(Exception):
    """Base typed error for the change tracker.

    Goals:
    - Stable `code` for programmatic handling by callers.
    - Human-readable `message`.
    - Optional `meta` payload for debugging (identifiers, type names).
    """

    def __init__(
        self,
        *,
        code: str,
        message: str,
        meta: dict[str, Any] | None = None,
    ) -> None:
        if not _ERROR_CODE_RE.fullmatch(code):
            raise ValueError(
                "Invalid tracker error code. Expected dot-separated lowercase tokens, "
                f"got: {code!r}"
            )
        super().__init__(message)
        self.code = code
        self.message = message
        self.meta = dict(meta or {})

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.meta:
            payload["meta"] = self.meta
        return payload


class MisuseError(TrackerError):
    """Programmer contract violation. Fatal to the call, never retried."""

    def __init__(
        self,
        *,
        message: str,
        code: str = "tracker.misuse",
        meta: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, meta=meta)


class AlreadyTrackedError(MisuseError):
    def __init__(self, *, message: str = "Entity already tracked", meta: dict[str, Any] | None = None):
        super().__init__(code="tracker.already_tracked", message=message, meta=meta)


class NotTrackedError(MisuseError, KeyError):
    def __init__(self, *, message: str = "Entity is not tracked", meta: dict[str, Any] | None = None):
        super().__init__(code="tracker.not_tracked", message=message, meta=meta)


class EntityNotModifiedError(MisuseError):
    def __init__(self, *, message: str = "Entity is not modified", meta: dict[str, Any] | None = None):
        super().__init__(code="tracker.entity_not_modified", message=message, meta=meta)


class ConfigurationError(TrackerError):
    """Model configuration is invalid. Raised while building the model."""

    def __init__(
        self,
        *,
        message: str,
        code: str = "model.configuration_error",
        meta: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, meta=meta)
