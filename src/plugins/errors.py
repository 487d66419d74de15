"""Errors raised by the plugin installation pipeline."""

from __future__ import annotations

from typing import List, Optional

from constants import ExitCodes


class PluginInstallError(Exception):
    """Base error; ``exit_code`` is what the process should exit with."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code if exit_code else ExitCodes.INSTALL_ERROR.value


class InvalidSpecifierError(PluginInstallError):
    """A batch reached the installer with names outside the allowlist."""

    def __init__(self, invalid: List[str]):
        self.invalid = list(invalid)
        super().__init__(
            "Refusing to install invalid plugin specifiers: " + ", ".join(repr(s) for s in self.invalid)
        )


class InstallerFailure(PluginInstallError):
    """The package manager could not be started or exited non-zero."""

    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        workspace_protocol: bool = False,
    ):
        super().__init__(message, exit_code)
        self.stdout = stdout
        self.stderr = stderr
        self.workspace_protocol = workspace_protocol
