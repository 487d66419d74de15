"""oxc matrix harness - run oxlint/oxfmt against real-world repositories.

This is the only place that turns errors into process exit codes.
"""
import logging
import os
import sys

from constants import Constants, ExitCodes
from common.logging_utils import add_file_handler, configure_logging
from args import parse_args

logger = logging.getLogger(__name__)


def _settings_from_env(environ):
    return {
        "npm_bin": environ.get(Constants.ENV_NPM_BIN) or Constants.NPM_BIN,
        "registry_url": environ.get(Constants.ENV_NPM_REGISTRY) or Constants.REGISTRY_URL_NPM,
    }


def cmd_install_plugins(args, environ):
    """Install jsPlugins for one command; returns the exit code."""
    from plugins import PluginInstallError, prepare_plugins  # pylint: disable=import-outside-toplevel

    command = args.COMMAND if args.COMMAND is not None else environ.get(Constants.ENV_COMMAND, "")
    cwd = os.path.abspath(args.CWD)
    try:
        prepare_plugins(command, cwd, dry_run=args.DRY_RUN, **_settings_from_env(environ))
    except PluginInstallError as exc:
        logger.error("Install failed: %s", exc)
        return exc.exit_code
    return ExitCodes.SUCCESS.value


def cmd_install_artifact(args, environ):
    from artifact import install_artifact  # pylint: disable=import-outside-toplevel

    install_artifact(os.path.abspath(args.CWD), _settings_from_env(environ)["npm_bin"])
    return ExitCodes.SUCCESS.value


def _load_entries(args):
    import matrix  # pylint: disable=import-outside-toplevel

    matrix_file = args.MATRIX_FILE or matrix.default_matrix_file(args.TOOL)
    logger.info("Using matrix file: %s", matrix_file)
    try:
        return matrix.load_matrix(matrix_file)
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.error("Could not load matrix file %s: %s", matrix_file, exc)
        return None


def cmd_clone(args, environ):  # pylint: disable=unused-argument
    import matrix  # pylint: disable=import-outside-toplevel

    entries = _load_entries(args)
    if entries is None:
        return ExitCodes.USAGE_ERROR.value
    failures = matrix.clone_all(entries, args.REPOS_DIR)
    if failures:
        logger.warning("%d of %d repositories failed to clone", failures, len(entries))
    return ExitCodes.SUCCESS.value


def cmd_test(args, environ):
    import matrix  # pylint: disable=import-outside-toplevel

    entries = _load_entries(args)
    if entries is None:
        return ExitCodes.USAGE_ERROR.value
    if not os.path.isdir(args.REPOS_DIR):
        logger.error("No repositories found in %s, did you forget to run clone?", args.REPOS_DIR)
        return ExitCodes.USAGE_ERROR.value

    binary = os.path.abspath(args.BINARY)
    logger.info("Binary: %s", binary)
    return matrix.run_matrix(
        entries,
        args.TOOL,
        binary,
        args.EXTRA_ARGS,
        repos_dir=args.REPOS_DIR,
        **_settings_from_env(environ),
    )


_COMMANDS = {
    "install-plugins": cmd_install_plugins,
    "install-artifact": cmd_install_artifact,
    "clone": cmd_clone,
    "test": cmd_test,
}


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)
    if args.LOG_FILE:
        add_file_handler(args.LOG_FILE)
        logger.info("Logging to file: %s", args.LOG_FILE)

    handler = _COMMANDS[args.action]
    try:
        code = handler(args, os.environ)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        code = 130  # Standard SIGINT exit code
    sys.exit(code)


if __name__ == "__main__":
    main()
