# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
Typed settings read from the knack CLI configuration.

Values come from ``~/.aksboot/config`` and can be overridden with environment variables
named ``AKSBOOT_<SECTION>_<OPTION>``, e.g. ``AKSBOOT_INSTALL_HELM_VERSION=v3.15.0``.
"""

from ._params import get_default_install_dir
from .errors import BootstrapError
from .helpers.constants import DEFAULT_HELM_VERSION, DEPLOYMENT_SCRIPT, DEPLOYMENT_SHELL
from .helpers.logger import verbose_requested

PACKAGE_MANAGERS = ("auto", "dnf", "yum", "apt-get")


class Settings:  # pylint: disable=too-few-public-methods,too-many-instance-attributes

    def __init__(self, deployment_script=DEPLOYMENT_SCRIPT, deployment_shell=DEPLOYMENT_SHELL,
                 helm_version=DEFAULT_HELM_VERSION, install_dir=None, package_manager="auto",
                 verbose=False):
        self.deployment_script = deployment_script
        self.deployment_shell = deployment_shell
        self.helm_version = helm_version
        self.install_dir = install_dir or get_default_install_dir()
        self.package_manager = package_manager
        self.verbose = verbose


def load_settings(cli_ctx):
    """Builds Settings from cli_ctx.config, falling back to defaults."""
    config = cli_ctx.config
    package_manager = config.get('install', 'package_manager', fallback="auto").strip().lower()
    if package_manager not in PACKAGE_MANAGERS:
        raise BootstrapError(f"install.package_manager must be one of {', '.join(PACKAGE_MANAGERS)}, "
                         f"not '{package_manager}'")
    return Settings(
        deployment_script=config.get('deployment', 'script', fallback=DEPLOYMENT_SCRIPT),
        deployment_shell=config.get('deployment', 'shell', fallback=DEPLOYMENT_SHELL),
        helm_version=config.get('install', 'helm_version', fallback=DEFAULT_HELM_VERSION),
        install_dir=config.get('install', 'directory', fallback=None),
        package_manager=package_manager,
        verbose=verbose_requested() or config.getboolean('core', 'verbose', fallback=False),
    )
