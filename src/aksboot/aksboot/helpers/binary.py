# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

# pylint: disable=missing-docstring

import os
import platform
import subprocess
import tarfile
import tempfile

from ..errors import ToolUnavailableError
from .constants import (AZURE_CLI_DEB_INSTALL_URL, AZURE_CLI_YUM_REPO, AZURE_CLI_YUM_REPO_PATH,
                        HELM_DOWNLOAD_URL, MICROSOFT_GPG_KEY_URL)
from .logger import logger
from .network import urlretrieve
from .os import make_executable, write_to_file
from .run_command import run_shell_command
from .spinner import Stage


def which(binary):
    path_var = os.getenv("PATH", "")

    for part in path_var.split(os.pathsep):
        if not part:
            continue
        bin_path = os.path.join(part, binary)
        if os.path.isfile(bin_path) and os.access(bin_path, os.X_OK):
            return bin_path

    return None


def ensure_on_path(install_dir):
    """Prepends install_dir to PATH so later commands and the deployment script can find new tools."""
    parts = os.getenv("PATH", "").split(os.pathsep)
    if install_dir and install_dir not in parts:
        logger.warning("Adding %s to PATH so installed tools can be found.", install_dir)
        os.environ["PATH"] = os.pathsep.join([install_dir] + [p for p in parts if p])


def check_binary(binary_name, install_binary_method, settings):
    """Returns the path of binary_name, installing it first if it is not on PATH."""
    found = which(binary_name)
    if found:
        logger.info("%s found at %s", binary_name, found)
        return found

    logger.info("%s was not found.", binary_name)
    with Stage(f"Installing {binary_name}", f"✓ Installed {binary_name}", f"✗ Failed to install {binary_name}"):
        try:
            install_binary_method(settings)
        except (subprocess.CalledProcessError, OSError, tarfile.TarError) as err:
            raise ToolUnavailableError(
                f"Required command '{binary_name}' not found (after install).",
                f"Installing {binary_name} failed: {err}") from err
        ensure_on_path(settings.install_dir)

    found = which(binary_name)
    if not found:
        raise ToolUnavailableError(f"Required command '{binary_name}' not found (after install).")
    return found


def check_az(settings):
    return check_binary("az", install_azure_cli, settings)


def check_kubectl(settings):
    return check_binary("kubectl", install_kubectl, settings)


def check_helm(settings):
    return check_binary("helm", install_helm, settings)


def get_arch(arch=None):
    """Normalize python's platform.machine() output to match build architectures."""
    if arch is None:
        arch = platform.machine()
    arch = arch.lower()
    if arch == "x86_64":
        return "amd64"
    if arch == "aarch64":
        return "arm64"
    if arch == "armv7l":
        return "arm"
    return arch


def find_package_manager(preferred="auto"):
    """Returns the system package manager to install the Azure CLI with.

    dnf is preferred over yum on the RPM family; apt-get covers Debian and Ubuntu.
    """
    candidates = ("dnf", "yum", "apt-get") if preferred == "auto" else (preferred,)
    for candidate in candidates:
        if which(candidate):
            return candidate
    raise ToolUnavailableError("Required command 'az' not found (after install).",
                               f"No supported package manager found (tried {', '.join(candidates)}).")


def install_azure_cli(settings):
    """
    Install the Azure CLI with the system package manager.
    """
    package_manager = find_package_manager(settings.package_manager)
    if package_manager == "apt-get":
        install_azure_cli_deb()
        return
    run_shell_command(["rpm", "--import", MICROSOFT_GPG_KEY_URL])
    write_to_file(AZURE_CLI_YUM_REPO_PATH, AZURE_CLI_YUM_REPO, mode=0o644)
    run_shell_command([package_manager, "install", "-y", "azure-cli"])


def install_azure_cli_deb(source_url=AZURE_CLI_DEB_INSTALL_URL):
    descriptor, script = tempfile.mkstemp(prefix="install-azure-cli-", suffix=".sh")
    os.close(descriptor)
    try:
        logger.info('Downloading Azure CLI installer from "%s"', source_url)
        urlretrieve(source_url, script)
        run_shell_command(["bash", script])
    finally:
        os.remove(script)


def install_kubectl(settings):
    """
    Install kubectl (and kubelogin) with `az aks install-cli`.
    """
    install_dir = settings.install_dir
    if not os.path.exists(install_dir):
        os.makedirs(install_dir)
    run_shell_command(["az", "aks", "install-cli",
                       "--install-location", os.path.join(install_dir, "kubectl"),
                       "--kubelogin-install-location", os.path.join(install_dir, "kubelogin")])


def install_helm(settings, source_url=None):
    """
    Install Helm, the package manager for Kubernetes charts, from its release archive.
    """
    system = platform.system()
    if system != "Linux":
        raise ToolUnavailableError(f'The helm binary cannot be installed on "{system}"')

    if not source_url:
        source_url = HELM_DOWNLOAD_URL.format(version=settings.helm_version, os=system.lower(),
                                              arch=get_arch())

    install_dir = settings.install_dir
    if not os.path.exists(install_dir):
        os.makedirs(install_dir)
    install_location = os.path.join(install_dir, "helm")

    tarball = f"{install_location}.tar.gz"
    logger.info('Downloading helm to "%s" from "%s"', install_location, source_url)
    try:
        urlretrieve(source_url, tarball)
        extract_binary(tarball, "helm", install_location)
    finally:
        if os.path.exists(tarball):
            os.remove(tarball)
    make_executable(install_location)
    return install_location


def extract_binary(tarball, binary_name, destination):
    """Copies the first regular file named binary_name out of a gzipped tarball."""
    with tarfile.open(tarball, "r:gz") as tar:
        for member in tar.getmembers():
            if member.isreg() and os.path.basename(member.name) == binary_name:
                source = tar.extractfile(member)
                with source, open(destination, "wb") as out:
                    out.write(source.read())
                return destination
    raise ToolUnavailableError(f"{binary_name} was not found in {tarball}")
