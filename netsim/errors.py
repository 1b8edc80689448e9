from __future__ import annotations


class NetsimError(Exception):
    pass


class AddressError(NetsimError, ValueError):
    """A string that is not a dotted-quad IPv4 address (or netmask)."""


class ConfigError(NetsimError):
    pass


class DuplicateAddressError(ConfigError):
    pass


class UnknownDeviceError(ConfigError, KeyError):
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Unknown device"


class UnknownInterfaceError(ConfigError, KeyError):
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Unknown interface"


class ProjectError(NetsimError):
    """Raised when a saved project cannot be loaded.

    `problems` carries every issue found so the caller can show them all at once.
    """

    def __init__(self, problems):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "Invalid project")
