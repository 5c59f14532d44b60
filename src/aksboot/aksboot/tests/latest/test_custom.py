# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

import os
import shutil
import subprocess
import tempfile
import unittest
from unittest.mock import Mock, patch

from aksboot.__main__ import main
from aksboot._config import Settings
from aksboot._params import InvocationParameters
from aksboot.context import BootstrapContext
from aksboot.custom import (ensure_tools, fetch_cluster_credentials, hand_off, login_with_managed_identity,
                            prepare_deployment_script, run_bootstrap, run_sanity_checks, select_subscription)
from aksboot.errors import (AuthenticationFailedError, CredentialFetchFailedError, DependencyNotFoundError,
                            MissingArgumentError, SubscriptionSelectionFailedError, ToolUnavailableError)

REQUIRED_ARGS = ["--resource_group", "rg1", "--aks_name", "c1"]


class FakeShell:
    """Records every external command and fails the ones matching a prefix."""

    def __init__(self, failing=(), deployment_exit_code=0):
        self.commands = []
        self.failing = [list(prefix) for prefix in failing]
        self.deployment_exit_code = deployment_exit_code

    def _record(self, command):
        command = list(command)
        self.commands.append(command)
        return command

    def _fails(self, command):
        return any(command[:len(prefix)] == prefix for prefix in self.failing)

    def check_output(self, command, **_):
        command = self._record(command)
        if self._fails(command):
            raise subprocess.CalledProcessError(1, command, output="simulated failure")
        if command[:2] == ["az", "login"]:
            return '[{"id": "sub", "name": "subscription"}]'
        return ""

    def call(self, command, **_):
        command = self._record(command)
        if self._fails(command):
            return 1
        if command[0] == "bash":
            return self.deployment_exit_code
        return 0

    def index_of(self, prefix):
        for i, command in enumerate(self.commands):
            if command[:len(prefix)] == list(prefix):
                return i
        return -1

    def ran(self, prefix):
        return self.index_of(prefix) >= 0


class BootstrapTestBase(unittest.TestCase):

    def setUp(self):
        self.workdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.workdir, ignore_errors=True)
        self.kubeconfig = os.path.join(self.workdir, ".kube", "config")
        self.settings = Settings(install_dir=os.path.join(self.workdir, "bin"))

        self.env_patch = patch.dict(os.environ, {"KUBECONFIG": self.kubeconfig})
        self.env_patch.start()
        self.addCleanup(self.env_patch.stop)

        self.which_patch = patch('aksboot.helpers.binary.which', side_effect=lambda name: f"/usr/bin/{name}")
        self.which_mock = self.which_patch.start()
        self.addCleanup(self.which_patch.stop)

        self.shell = FakeShell()
        self._patch_shell()

    def _patch_shell(self):
        for name in ("check_output", "call"):
            shell_patch = patch(f'subprocess.{name}', side_effect=getattr(self.shell, name))
            shell_patch.start()
            self.addCleanup(shell_patch.stop)

    def use_shell(self, shell):
        self.shell.__dict__.update(shell.__dict__)

    def write_script(self, content=b"#!/bin/bash\necho deploy\n"):
        path = os.path.join(self.workdir, "k8s_deployment.sh")
        with open(path, "wb") as f:
            f.write(content)
        return path

    def write_kubeconfig(self, content):
        os.makedirs(os.path.dirname(self.kubeconfig), exist_ok=True)
        with open(self.kubeconfig, "wb") as f:
            f.write(content)

    def context(self, params=None):
        params = params or InvocationParameters("rg1", "c1")
        return BootstrapContext(params, self.settings, workdir=self.workdir, kubeconfig=self.kubeconfig)


class RunBootstrapTest(BootstrapTestBase):

    def test_missing_required_flag_runs_nothing(self):
        self.write_script()
        for args in ([], ["--aks_name", "c1"], ["--resource_group", "rg1", "--foo", "bar"]):
            with self.subTest(args=args):
                with self.assertRaises(MissingArgumentError):
                    run_bootstrap(args, self.settings, workdir=self.workdir)
        self.assertEqual(self.shell.commands, [])
        self.which_mock.assert_not_called()

    def test_missing_deployment_script_skips_authentication(self):
        with self.assertRaises(DependencyNotFoundError) as cm:
            run_bootstrap(REQUIRED_ARGS, self.settings, workdir=self.workdir)
        self.assertEqual(cm.exception.exit_code, 2)
        self.assertIn("k8s_deployment.sh not found in", cm.exception.error_msg)
        self.assertFalse(self.shell.ran(["az", "login"]))
        self.assertEqual(self.shell.commands, [])

    def test_forwarded_flags_reach_deployment_script_in_order(self):
        self.write_script()
        args = REQUIRED_ARGS + ["--foo", "bar", "--baz"]
        self.assertEqual(run_bootstrap(args, self.settings, workdir=self.workdir), 0)
        self.assertEqual(self.shell.commands[-1],
                         ["bash", "./k8s_deployment.sh", "--resource_group", "rg1", "--aks_name", "c1",
                          "--foo", "bar", "--baz"])

    def test_stage_order(self):
        self.write_script()
        run_bootstrap(REQUIRED_ARGS + ["--subscription_id", "sub1"], self.settings, workdir=self.workdir)
        order = [self.shell.index_of(prefix) for prefix in (
            ["az", "login"], ["az", "account", "set"], ["az", "aks", "get-credentials"],
            ["kubectl", "cluster-info"], ["bash"])]
        self.assertEqual(order, sorted(order))
        self.assertNotIn(-1, order)

    def test_deployment_exit_code_is_propagated(self):
        self.write_script()
        self.use_shell(FakeShell(deployment_exit_code=7))
        self.assertEqual(run_bootstrap(REQUIRED_ARGS, self.settings, workdir=self.workdir), 7)

    def test_present_tools_are_not_installed(self):
        self.write_script()
        with patch('aksboot.helpers.binary.install_azure_cli') as az_mock, \
                patch('aksboot.helpers.binary.install_kubectl') as kubectl_mock, \
                patch('aksboot.helpers.binary.install_helm') as helm_mock:
            run_bootstrap(REQUIRED_ARGS, self.settings, workdir=self.workdir)
            run_bootstrap(REQUIRED_ARGS, self.settings, workdir=self.workdir)
        az_mock.assert_not_called()
        kubectl_mock.assert_not_called()
        helm_mock.assert_not_called()
        self.assertFalse(self.shell.ran(["dnf"]))
        self.assertFalse(self.shell.ran(["az", "aks", "install-cli"]))

    def test_authentication_failure_halts_before_credential_fetch(self):
        self.write_script()
        self.use_shell(FakeShell(failing=[["az", "login"]]))
        with self.assertRaises(AuthenticationFailedError):
            run_bootstrap(REQUIRED_ARGS + ["--subscription_id", "sub1"], self.settings, workdir=self.workdir)
        self.assertFalse(self.shell.ran(["az", "account", "set"]))
        self.assertFalse(self.shell.ran(["az", "aks", "get-credentials"]))
        self.assertFalse(self.shell.ran(["bash"]))

    def test_subscription_failure_prevents_credential_fetch(self):
        self.write_script()
        self.use_shell(FakeShell(failing=[["az", "account", "set"]]))
        with self.assertRaises(SubscriptionSelectionFailedError):
            run_bootstrap(REQUIRED_ARGS + ["--subscription_id", "sub1"], self.settings, workdir=self.workdir)
        self.assertFalse(self.shell.ran(["az", "aks", "get-credentials"]))

    def test_failed_diagnostics_do_not_stop_handoff(self):
        self.write_script()
        self.use_shell(FakeShell(failing=[["kubectl"], ["helm"]]))
        self.assertEqual(run_bootstrap(REQUIRED_ARGS, self.settings, workdir=self.workdir), 0)
        self.assertTrue(self.shell.ran(["bash"]))


class PrepareDeploymentScriptTest(BootstrapTestBase):

    def test_crlf_is_normalized_and_script_made_executable(self):
        path = self.write_script(b"#!/bin/bash\r\necho deploy\r\n")
        os.chmod(path, 0o644)
        prepare_deployment_script(self.context())
        with open(path, "rb") as f:
            self.assertEqual(f.read(), b"#!/bin/bash\necho deploy\n")
        self.assertTrue(os.access(path, os.X_OK))

    def test_normalization_failure_is_not_fatal(self):
        self.write_script()
        with patch('aksboot.custom.normalize_line_endings', side_effect=PermissionError("read-only")):
            prepare_deployment_script(self.context())

    def test_custom_script_name(self):
        self.settings = Settings(deployment_script="deploy.sh")
        with self.assertRaises(DependencyNotFoundError) as cm:
            prepare_deployment_script(self.context())
        self.assertIn("deploy.sh not found", cm.exception.error_msg)


class EnsureToolsTest(BootstrapTestBase):

    def test_tools_are_recorded_on_context(self):
        ctx = self.context()
        self.assertEqual(ensure_tools(ctx), {"az": "/usr/bin/az", "kubectl": "/usr/bin/kubectl",
                                             "helm": "/usr/bin/helm"})

    def test_failed_install_stops_later_tools(self):
        self.which_mock.side_effect = lambda name: None if name == "kubectl" else f"/usr/bin/{name}"
        with patch('aksboot.helpers.binary.install_kubectl') as kubectl_mock, \
                patch('aksboot.helpers.binary.install_helm') as helm_mock, \
                patch('aksboot.helpers.binary.ensure_on_path'):
            with self.assertRaises(ToolUnavailableError):
                ensure_tools(self.context())
        kubectl_mock.assert_called_once()
        helm_mock.assert_not_called()


class LoginTest(BootstrapTestBase):

    def test_login_without_client_id(self):
        ctx = self.context()
        account = login_with_managed_identity(ctx)
        self.assertEqual(self.shell.commands[0],
                         ["az", "login", "--identity", "--allow-no-subscriptions", "--output", "json"])
        self.assertEqual(account, [{"id": "sub", "name": "subscription"}])
        self.assertEqual(ctx.account, account)

    def test_login_scoped_to_client_id(self):
        login_with_managed_identity(self.context(InvocationParameters("rg1", "c1", mi_client_id="mi-123")))
        self.assertEqual(self.shell.commands[0][:5], ["az", "login", "--identity", "--username", "mi-123"])

    def test_unparseable_output(self):
        ctx = self.context()
        with patch('subprocess.check_output', return_value="WARNING: not json"):
            self.assertEqual(login_with_managed_identity(ctx), [])

    def test_login_failure(self):
        self.use_shell(FakeShell(failing=[["az", "login"]]))
        with self.assertRaises(AuthenticationFailedError) as cm:
            login_with_managed_identity(self.context(InvocationParameters("rg1", "c1", mi_client_id="mi")))
        self.assertEqual(cm.exception.error_msg, "az login --identity with --username failed")


class SelectSubscriptionTest(BootstrapTestBase):

    def test_skipped_without_subscription(self):
        self.assertFalse(select_subscription(self.context()))
        self.assertEqual(self.shell.commands, [])

    def test_selects_subscription(self):
        self.assertTrue(select_subscription(self.context(InvocationParameters("rg1", "c1", subscription_id="s1"))))
        self.assertEqual(self.shell.commands, [["az", "account", "set", "--subscription", "s1"]])


class FetchCredentialsTest(BootstrapTestBase):

    def test_fetch_overwrites_kubeconfig(self):
        self.assertEqual(fetch_cluster_credentials(self.context()), self.kubeconfig)
        self.assertEqual(self.shell.commands[0],
                         ["az", "aks", "get-credentials", "-g", "rg1", "-n", "c1", "--overwrite-existing",
                          "--file", self.kubeconfig, "--output", "none"])

    def test_fetch_failure_carries_rbac_hint(self):
        self.use_shell(FakeShell(failing=[["az", "aks", "get-credentials"]]))
        with self.assertRaises(CredentialFetchFailedError) as cm:
            fetch_cluster_credentials(self.context())
        self.assertIn("role assignment", cm.exception.recommendation)
        self.assertIn("simulated failure", cm.exception.error_msg)
        self.assertEqual(cm.exception.exit_code, 1)

    def test_non_mapping_kubeconfig_is_a_fetch_failure(self):
        self.write_kubeconfig(b"- just\n- a list\n")
        with self.assertRaises(CredentialFetchFailedError) as cm:
            fetch_cluster_credentials(self.context())
        self.assertIn("is not a mapping", cm.exception.error_msg)
        self.assertFalse(self.shell.ran(["az", "aks", "get-credentials"]))


class SanityChecksTest(BootstrapTestBase):

    def test_all_checks_run_against_kubeconfig(self):
        self.assertEqual(run_sanity_checks(self.context()), [0, 0, 0])
        for command in self.shell.commands:
            self.assertEqual(command[-2:], ["--kubeconfig", self.kubeconfig])

    def test_missing_binaries_are_tolerated(self):
        with patch('subprocess.call', side_effect=FileNotFoundError("kubectl")):
            self.assertEqual(run_sanity_checks(self.context()), [None, None, None])

    def test_non_mapping_kubeconfig_is_tolerated(self):
        self.write_kubeconfig(b"- just\n- a list\n")
        self.assertEqual(run_sanity_checks(self.context()), [0, 0, 0])

    def test_malformed_kubeconfig_does_not_stop_handoff(self):
        self.write_script()
        self.write_kubeconfig(b"current-context: [unclosed\n")
        with patch('aksboot.custom.prep_kube_config'):
            self.assertEqual(run_bootstrap(REQUIRED_ARGS, self.settings, workdir=self.workdir), 0)
        self.assertTrue(self.shell.ran(["bash"]))


class HandOffTest(BootstrapTestBase):

    def test_missing_shell(self):
        self.settings = Settings(deployment_shell="no-such-shell")
        with patch('subprocess.call', side_effect=FileNotFoundError("no-such-shell")):
            with self.assertRaises(DependencyNotFoundError):
                hand_off(self.context())


class MainTest(BootstrapTestBase):

    def setUp(self):
        super().setUp()
        self.cli_ctx = Mock()
        self.cli_ctx.config.get.side_effect = lambda section, option, fallback=None: fallback
        self.cli_ctx.config.getboolean.return_value = False

    def test_missing_argument_exit_code(self):
        self.assertEqual(main([], cli_ctx=self.cli_ctx, workdir=self.workdir), 64)
        self.cli_ctx.logging.configure.assert_called_once()

    def test_missing_script_exit_code(self):
        self.assertEqual(main(REQUIRED_ARGS, cli_ctx=self.cli_ctx, workdir=self.workdir), 2)

    def test_authentication_failure_exit_code(self):
        self.write_script()
        self.use_shell(FakeShell(failing=[["az", "login"]]))
        self.assertEqual(main(REQUIRED_ARGS, cli_ctx=self.cli_ctx, workdir=self.workdir), 1)

    def test_success_returns_deployment_exit_code(self):
        self.write_script()
        self.use_shell(FakeShell(deployment_exit_code=3))
        self.assertEqual(main(REQUIRED_ARGS, cli_ctx=self.cli_ctx, workdir=self.workdir), 3)

    def test_verbose_configures_info_logging(self):
        with patch.dict(os.environ, {"RUN_VERBOSE": "1"}):
            main([], cli_ctx=self.cli_ctx, workdir=self.workdir)
        self.cli_ctx.logging.configure.assert_called_once_with(['--verbose'])

    def test_verbose_from_config(self):
        self.cli_ctx.config.getboolean.return_value = True
        main([], cli_ctx=self.cli_ctx, workdir=self.workdir)
        self.cli_ctx.logging.configure.assert_called_once_with(['--verbose'])
