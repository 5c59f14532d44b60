# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""This module is the entry point for the `aksboot` command."""

import os
import sys

from knack import CLI
from knack.util import CLIError

from ._config import load_settings
from .custom import run_bootstrap
from .errors import BootstrapError, EX_GENERIC, EX_INTERRUPTED
from .helpers.constants import CONFIG_ENV_PREFIX
from .helpers.logger import logger

CLI_NAME = "aksboot"


def get_cli():
    """Returns the knack CLI context that owns configuration and logging."""
    return CLI(cli_name=CLI_NAME,
               config_dir=os.path.expanduser(os.path.join('~', f'.{CLI_NAME}')),
               config_env_var_prefix=CONFIG_ENV_PREFIX)


def configure_logging(cli_ctx, settings):
    cli_ctx.logging.configure(['--verbose'] if settings.verbose else [])


def main(args=None, cli_ctx=None, workdir=None):
    args = sys.argv[1:] if args is None else list(args)
    cli_ctx = cli_ctx or get_cli()
    try:
        settings = load_settings(cli_ctx)
        configure_logging(cli_ctx, settings)
        return run_bootstrap(args, settings, workdir=workdir)
    except BootstrapError as err:
        logger.error(err)
        return err.exit_code
    except CLIError as err:
        logger.error(err)
        return EX_GENERIC
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return EX_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
