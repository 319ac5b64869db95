"""
Errors raised by nmc.

I/O failures are left as the builtin OSError family so callers keep the
path and errno; everything nmc decides is fatal derives from NmcError.
"""


class NmcError(Exception):
    """Base class for nmc failures."""


class HostNotFoundError(NmcError):
    """None of the preconfigured hosts has a NIC present on this machine."""


class ConfigFormatError(NmcError, ValueError):
    """host_config.yaml does not describe a list of hosts."""


class ProfileParseError(NmcError, ValueError):
    """A connection profile could not be parsed."""

    def __init__(self, path, reason: str):
        self.path = path
        super().__init__(f"loading file {str(path)!r}: {reason}")


class CompileError(NmcError):
    """The nmstate engine rejected a network-state document."""


class CompiledConfigError(NmcError, ValueError):
    """The nmstate engine output is not a list of [filename, content] pairs."""


class GenerateError(NmcError):
    """The set of network-state documents cannot be turned into profiles."""
