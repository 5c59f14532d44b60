# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
This module builds kubectl and helm commands against a specific kubeconfig.
"""


def add_kubeconfig_to_command(kubeconfig=None):
    """Returns a list with kubeconfig flag"""
    return ["--kubeconfig", kubeconfig] if kubeconfig else []


def sanity_check_commands(kubeconfig=None):
    """Returns the read-only commands used to confirm cluster connectivity."""
    kubeconfig_flag = add_kubeconfig_to_command(kubeconfig)
    return [
        ["kubectl", "cluster-info"] + kubeconfig_flag,
        ["kubectl", "get", "nodes", "-o", "wide"] + kubeconfig_flag,
        ["helm", "version"] + kubeconfig_flag,
    ]
