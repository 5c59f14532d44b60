# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
Helper functions for working with the environment, files, and other operating system features.
"""

import os
import stat
import yaml

from .constants import KUBECONFIG


def write_to_file(filename, file_input, mode=0o600):
    """
    Writes file_input into file
    """
    descriptor = os.open(path=filename, flags=os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode=mode)
    with open(descriptor, "w", encoding="utf-8") as out_file:
        out_file.write(file_input)


def normalize_line_endings(filename):
    """Strips a trailing carriage return from every line. Returns True if the file changed."""
    with open(filename, "rb") as file_pointer:
        content = file_pointer.read()
    normalized = content.replace(b"\r\n", b"\n")
    if normalized.endswith(b"\r"):
        normalized = normalized[:-1]
    if normalized == content:
        return False
    with open(filename, "wb") as file_pointer:
        file_pointer.write(normalized)
    return True


def make_executable(filename):
    """Adds the execute bits to a file, like `chmod +x`."""
    os.chmod(filename, os.stat(filename).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def list_directory(path):
    """Returns a short `ls -la`-style listing of a directory as a list of lines."""
    lines = []
    with os.scandir(path) as entries:
        for entry in sorted(entries, key=lambda e: e.name):
            info = entry.stat(follow_symlinks=False)
            lines.append(f"{stat.filemode(info.st_mode)} {info.st_size:>10} {entry.name}")
    return lines


def get_kubeconfig_path(environ=None):
    """Returns the kubeconfig path kubectl will use: the first KUBECONFIG entry or ~/.kube/config."""
    environ = os.environ if environ is None else environ
    if environ.get(KUBECONFIG):
        return environ[KUBECONFIG].split(os.pathsep)[0]
    return os.path.join(os.path.expanduser('~'), '.kube', 'config')


def prep_kube_config(kubeconfig_path):
    """Prepares kubeconfig file for safe use with the "az aks get-credentials" command."""
    kube_dir = os.path.dirname(kubeconfig_path)
    if kube_dir and not os.path.exists(kube_dir):
        os.makedirs(kube_dir, mode=0o700)
    if os.path.exists(kubeconfig_path):
        with open(kubeconfig_path, "r+", encoding="utf-8") as file_pointer:
            config = yaml.safe_load(file_pointer) or {}
            if not isinstance(config, dict):
                raise ValueError(f"kubeconfig {kubeconfig_path} is not a mapping")
            changed = False
            for key in ["clusters", "contexts", "users"]:
                if config.get(key) is None:
                    config[key] = []
                    changed = True
            if changed:
                file_pointer.seek(0)
                yaml.safe_dump(config, file_pointer)
                file_pointer.truncate()
    return kubeconfig_path


def read_current_context(kubeconfig_path):
    """Returns the current-context recorded in a kubeconfig file, or None."""
    if not os.path.exists(kubeconfig_path):
        return None
    with open(kubeconfig_path, "r", encoding="utf-8") as file_pointer:
        config = yaml.safe_load(file_pointer) or {}
    if not isinstance(config, dict):
        return None
    return config.get("current-context") or None
