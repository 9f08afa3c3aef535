"""Exception hierarchy for dkci.

Every error the command handlers expect to report derives from
:class:`DkciError`; the dispatcher in ``dkci.__main__`` prints it with the
``[x]`` prefix and exits with status 1.
"""

from __future__ import annotations


class DkciError(Exception):
    """Base exception for dkci."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(DkciError):
    """BDFS configuration could not be resolved."""


class ConfigUnreadableError(ConfigError):
    """The settings file is missing or cannot be read."""


class ConfigMalformedError(ConfigError):
    """The settings file is not valid TOML."""


class ConfigIncompleteError(ConfigError):
    """client_id, client_secret or token_path is empty."""


class SelectionError(DkciError):
    """The user's menu picks could not be turned into a selection."""


class EmptySelectionError(SelectionError):
    """Nothing was selected."""


class NoCandidatesError(DkciError):
    """No image or archive matched."""


class CloudError(DkciError):
    """Baidu Netdisk API or transport failure."""

    def __init__(self, message: str, errno: int | None = None) -> None:
        self.errno = errno
        super().__init__(message)


class CloudNotFoundError(CloudError):
    """Remote path does not exist."""
