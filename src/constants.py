"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    INSTALL_ERROR = 1
    USAGE_ERROR = 2


class Tools(Enum):
    """Binaries the matrix can be run against.

    Args:
        Enum (string): Tool names.
    """

    OXLINT = "oxlint"
    OXFMT = "oxfmt"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

    # Environment variables read at the CLI boundary only
    ENV_COMMAND = "MATRIX_COMMAND"
    ENV_NPM_BIN = "MATRIX_NPM_BIN"
    ENV_NPM_REGISTRY = "MATRIX_NPM_REGISTRY"
    ENV_LOG_LEVEL = "MATRIX_LOG_LEVEL"

    # Plugin discovery
    DEFAULT_CONFIG_FILES = [".oxlintrc.json"]
    PLUGINS_KEY = "jsPlugins"
    SKIP_WORD = "skip"
    # Local (relative path) plugins import their helpers from this package
    PLUGIN_RUNTIME_PACKAGE = "@oxlint/plugins"

    # Installer
    NPM_BIN = "npm"
    NODE_MODULES = "node_modules"
    NPM_INSTALL_FLAGS = ["--no-save", "--ignore-scripts", "--no-audit", "--no-fund"]
    NPM_ISOLATED_INSTALL_FLAGS = ["--ignore-scripts", "--no-audit", "--no-fund"]
    WORKSPACE_FAILURE_PATTERNS = [
        r"Unsupported URL Type:?\s*\"?workspace",
        r"\bEUNSUPPORTEDPROTOCOL\b",
    ]
    TEMP_DIR_PREFIX = "oxc-matrix-plugins-"

    # Prebuilt binary artifact
    BINARY_PACKAGE = "oxlint"
    ARTIFACT_DIR_NAMES = ["oxlint-package", "oxlint-install"]
    ARTIFACT_SEARCH_DEPTH = 4

    # Matrix runner
    MATRIX_FILE_TEMPLATE = "{tool}-matrix.json"
    REPOS_DIR = "repos"
    OXFMT_CONFIG_FILE = ".oxfmtrc.json"
    GIT_CLONE_URL = "git@github.com:{repository}.git"
