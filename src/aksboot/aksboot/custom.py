# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""This module implements the bootstrap stages run by `aksboot`."""

# pylint: disable=missing-docstring

import json
import os

import yaml

from ._params import parse_invocation
from .context import BootstrapContext
from .errors import (AuthenticationFailedError, CredentialFetchFailedError, DependencyNotFoundError,
                     SubscriptionSelectionFailedError)
from .helpers.binary import check_az, check_helm, check_kubectl
from .helpers.kubectl import sanity_check_commands
from .helpers.logger import logger
from .helpers.os import list_directory, make_executable, normalize_line_endings
from .helpers.os import prep_kube_config, read_current_context
from .helpers.run_command import run_best_effort_command, run_passthrough_command, try_command

TOOL_CHECKS = (
    ("az", check_az),
    ("kubectl", check_kubectl),
    ("helm", check_helm),
)


def run_bootstrap(args, settings, workdir=None):
    """Runs every stage in order and returns the deployment script's exit code."""
    params = parse_invocation(args)
    ctx = BootstrapContext(params, settings, workdir=workdir)
    prepare_deployment_script(ctx)
    ensure_tools(ctx)
    login_with_managed_identity(ctx)
    select_subscription(ctx)
    fetch_cluster_credentials(ctx)
    run_sanity_checks(ctx)
    return hand_off(ctx)


def prepare_deployment_script(ctx):
    logger.warning("PWD: %s", ctx.workdir)
    try:
        for line in list_directory(ctx.workdir):
            logger.info(line)
    except OSError as err:
        logger.warning("Could not list %s: %s", ctx.workdir, err)

    script_name = os.path.basename(ctx.deployment_script)
    if not os.path.isfile(ctx.deployment_script):
        raise DependencyNotFoundError(f"{script_name} not found in {ctx.workdir}")

    # Normalize possible CRLF and ensure executable
    try:
        if normalize_line_endings(ctx.deployment_script):
            logger.info("Converted CRLF line endings in %s", script_name)
        make_executable(ctx.deployment_script)
    except OSError as err:
        logger.warning("Could not normalize %s: %s", script_name, err)


def ensure_tools(ctx):
    """Installs whichever of az, kubectl and helm is missing, in that order."""
    for name, check in TOOL_CHECKS:
        ctx.tools[name] = check(ctx.settings)
    return ctx.tools


def login_with_managed_identity(ctx):
    mi_client_id = ctx.params.mi_client_id
    command = ["az", "login", "--identity"]
    if mi_client_id:
        command += ["--username", mi_client_id]
        error_msg = "az login --identity with --username failed"
    else:
        error_msg = "az login --identity failed"
    command += ["--allow-no-subscriptions", "--output", "json"]

    output = try_command(command, "Authenticate with the managed identity", AuthenticationFailedError,
                         error_msg=error_msg, combine_std=False)
    try:
        ctx.account = json.loads(output) if output and output.strip() else []
    except ValueError:
        logger.info("Could not parse `az login` output; continuing without account details")
        ctx.account = []
    logger.info("Managed identity can see %d subscription(s)", len(ctx.account))
    return ctx.account


def select_subscription(ctx):
    subscription_id = ctx.params.subscription_id
    if not subscription_id:
        logger.info("No --subscription_id given; keeping the default subscription")
        return False
    command = ["az", "account", "set", "--subscription", subscription_id]
    try_command(command, f"Select subscription {subscription_id}", SubscriptionSelectionFailedError,
                error_msg=f"az account set --subscription {subscription_id} failed")
    return True


def fetch_cluster_credentials(ctx):
    params = ctx.params
    try:
        prep_kube_config(ctx.kubeconfig)
    except (OSError, ValueError, yaml.YAMLError) as err:
        raise CredentialFetchFailedError(f"Could not prepare kubeconfig {ctx.kubeconfig}: {err}") from err

    logger.warning("aks credentials will overwrite existing cluster config for cluster %s if it exists",
                   params.aks_name)
    command = ["az", "aks", "get-credentials", "-g", params.resource_group, "-n", params.aks_name,
               "--overwrite-existing", "--file", ctx.kubeconfig, "--output", "none"]
    try_command(command, f"Fetch credentials for AKS cluster {params.aks_name}", CredentialFetchFailedError,
                error_msg="az aks get-credentials failed",
                recommendation="Check the managed identity's role assignment at the AKS scope "
                               "and that the subscription is visible to it.",
                include_error_stdout=True)
    return ctx.kubeconfig


def run_sanity_checks(ctx):
    try:
        current_context = read_current_context(ctx.kubeconfig)
    except (OSError, AttributeError, TypeError, yaml.YAMLError) as err:
        logger.warning("Could not read %s: %s", ctx.kubeconfig, err)
    else:
        logger.warning("kubeconfig %s current-context: %s", ctx.kubeconfig, current_context or "<unset>")

    return [run_best_effort_command(command) for command in sanity_check_commands(ctx.kubeconfig)]


def hand_off(ctx):
    settings = ctx.settings
    command = [settings.deployment_shell, os.path.join(".", settings.deployment_script)]
    command += ctx.params.deployment_arguments()
    logger.warning("Launching %s with original arguments…", settings.deployment_script)
    try:
        return run_passthrough_command(command, cwd=ctx.workdir)
    except FileNotFoundError as err:
        raise DependencyNotFoundError(f"Cannot run {settings.deployment_script}: "
                                      f"'{settings.deployment_shell}' not found") from err
