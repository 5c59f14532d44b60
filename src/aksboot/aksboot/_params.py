# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
This module defines the parameters (aka arguments) accepted by `aksboot`.

Only four flags are consumed here. Every other token is kept, in order, and forwarded to
the deployment script untouched.
"""

import os
import os.path
import platform

from .errors import MissingArgumentError

RESOURCE_GROUP_FLAG = "--resource_group"
AKS_NAME_FLAG = "--aks_name"
SUBSCRIPTION_ID_FLAG = "--subscription_id"
MI_CLIENT_ID_FLAG = "--mi_client_id"

_CONSUMED_FLAGS = {
    RESOURCE_GROUP_FLAG: "resource_group",
    AKS_NAME_FLAG: "aks_name",
    SUBSCRIPTION_ID_FLAG: "subscription_id",
    MI_CLIENT_ID_FLAG: "mi_client_id",
}


class InvocationParameters:  # pylint: disable=too-few-public-methods
    """Arguments of a single run. Parsed once and never mutated."""

    def __init__(self, resource_group, aks_name, subscription_id=None, mi_client_id=None,
                 passthrough=None):
        self.resource_group = resource_group
        self.aks_name = aks_name
        self.subscription_id = subscription_id or None
        self.mi_client_id = mi_client_id or None
        self.passthrough = tuple(passthrough or ())

    def deployment_arguments(self):
        """Required flags first, then the forwarded tokens in their original order."""
        return [RESOURCE_GROUP_FLAG, self.resource_group,
                AKS_NAME_FLAG, self.aks_name] + list(self.passthrough)

    def __eq__(self, other):
        return isinstance(other, InvocationParameters) and vars(self) == vars(other)

    def __repr__(self):
        return (f"InvocationParameters(resource_group={self.resource_group!r}, "
                f"aks_name={self.aks_name!r}, subscription_id={self.subscription_id!r}, "
                f"mi_client_id={self.mi_client_id!r}, passthrough={self.passthrough!r})")


def parse_invocation(args):
    """Splits argv into InvocationParameters.

    A consumed flag takes the next token as its value, even if that token looks like a flag.
    A consumed flag given as the last token has an empty value.
    """
    values = dict.fromkeys(_CONSUMED_FLAGS.values(), "")
    passthrough = []
    args = list(args)
    i = 0
    while i < len(args):
        token = args[i]
        if token in _CONSUMED_FLAGS:
            values[_CONSUMED_FLAGS[token]] = args[i + 1] if i + 1 < len(args) else ""
            i += 2
        else:
            passthrough.append(token)
            i += 1

    if not values["resource_group"]:
        raise MissingArgumentError(f"{RESOURCE_GROUP_FLAG} is required")
    if not values["aks_name"]:
        raise MissingArgumentError(f"{AKS_NAME_FLAG} is required")

    return InvocationParameters(passthrough=passthrough, **values)


def get_virtualenv():
    return os.getenv("VIRTUAL_ENV")


def _get_default_install_location(exe_name):
    install_location = None
    system = platform.system()
    if system in ('Linux', 'Darwin'):
        venv = get_virtualenv()
        if venv:
            install_location = f'{venv}/bin/{exe_name}'
        else:
            install_location = f'/usr/local/bin/{exe_name}'
    return install_location


def get_default_install_dir():
    location = _get_default_install_location("helm")
    return os.path.dirname(location) if location else None
