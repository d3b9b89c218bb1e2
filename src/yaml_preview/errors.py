"""
YAML preview error types.

None of these are fatal to the host: the worst outcome is a preview that
fails to load or fails to update.
"""

from typing import Any, Optional


class PreviewError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class UserInputError(PreviewError):
    """No active document, or the active document is not YAML."""

    def __init__(self, message: str, code: str = "user_input_error"):
        super().__init__(code, message)


class ResolutionDegradation(PreviewError):
    """A resolution tier could not be used; the resolver falls to the next one."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("resolution_degraded", message, details)


class ServeError(PreviewError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("serve_error", message, details)


class TeardownError(PreviewError):
    def __init__(self, step: str, message: str):
        super().__init__("teardown_error", message, {"step": step})
        self.step = step
