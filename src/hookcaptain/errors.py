"""Exception hierarchy for hookcaptain."""


class HookCaptainError(Exception):
    """Base class for all hookcaptain errors."""


class InvalidHookName(HookCaptainError, LookupError):
    """Raised when a hook name is not one of the recognized git or virtual hooks."""

    def __init__(self, name: str, source: str | None = None) -> None:
        self.name = name
        message = f"Invalid hook name: {name}"
        if source:
            message += f" (in {source})"
        super().__init__(message)


class ConfigLoadError(HookCaptainError):
    """Raised when a configuration document or one of its includes cannot be loaded."""


class UnresolvedCondition(HookCaptainError, LookupError):
    """Raised when a condition identifier maps to no registered or importable condition."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Unknown condition: {identifier}")


class ActionFailed(HookCaptainError):
    """Raised by in-process actions to signal a clean failure with a message."""


class PluginLoadError(HookCaptainError):
    """Raised when a configured plugin cannot be imported or instantiated."""


class BootstrapError(HookCaptainError):
    """Raised when the configured bootstrap file is missing or fails to run."""
