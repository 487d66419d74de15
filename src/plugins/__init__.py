"""oxlint JS plugin resolution and installation.

Reads ``jsPlugins`` from the oxlint configs a matrix command refers to,
keeps only plugin-shaped package names, and installs them with npm.
"""

from .errors import PluginInstallError, InvalidSpecifierError, InstallerFailure
from .config_parser import parse_js_plugins, strip_jsonc_comments
from .collector import collect_specifiers
from .allowlist import filter_installable
from .installer import InstallResult, install_packages, verify_install_batch
from .prepare import prepare_plugins

__all__ = [
    "PluginInstallError",
    "InvalidSpecifierError",
    "InstallerFailure",
    "parse_js_plugins",
    "strip_jsonc_comments",
    "collect_specifiers",
    "filter_installable",
    "InstallResult",
    "install_packages",
    "verify_install_batch",
    "prepare_plugins",
]
