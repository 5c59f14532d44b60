# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
State shared by the bootstrap stages.

Each stage receives the context explicitly and records what it produced (tool paths, the
login result, the kubeconfig path) on it. Nothing is read back from ambient global state.
"""

import os

from .helpers.os import get_kubeconfig_path


class BootstrapContext:  # pylint: disable=too-few-public-methods,too-many-instance-attributes

    def __init__(self, params, settings, workdir=None, kubeconfig=None):
        self.params = params
        self.settings = settings
        self.workdir = os.path.abspath(workdir or os.getcwd())
        self.deployment_script = os.path.join(self.workdir, settings.deployment_script)
        self.kubeconfig = kubeconfig or get_kubeconfig_path()
        self.account = None
        self.tools = {}
