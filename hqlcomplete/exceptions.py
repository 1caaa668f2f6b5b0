"""hqlcomplete exception hierarchy.

All hqlcomplete exceptions inherit from CompletionError and support cause chaining.
Completion is advisory: runtime failures degrade to fewer completions, so these
are raised only for configuration problems and host/provider programming errors.
"""


class CompletionError(Exception):
    """Base exception for all hqlcomplete errors.

    Wraps original errors as __cause__ for proper exception chaining.
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class ConfigError(CompletionError):
    """Raised when the [tool.hqlcomplete] configuration cannot be loaded.

    Examples: malformed TOML, unknown keys, non-positive limits.
    """

    pass


class UnsupportedActionError(CompletionError):
    """Raised when an item is applied with an action it does not list."""

    def __init__(
        self,
        message: str,
        *,
        item_label: str = "",
        action: str = "",
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.item_label = item_label
        self.action = action
