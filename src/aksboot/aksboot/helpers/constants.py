# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
Constant values used by aksboot.
"""

RUN_VERBOSE = "RUN_VERBOSE"
KUBECONFIG = "KUBECONFIG"
CONFIG_ENV_PREFIX = "AKSBOOT"

DEPLOYMENT_SCRIPT = "k8s_deployment.sh"
DEPLOYMENT_SHELL = "bash"

MICROSOFT_GPG_KEY_URL = "https://packages.microsoft.com/keys/microsoft.asc"
AZURE_CLI_YUM_REPO_PATH = "/etc/yum.repos.d/azure-cli.repo"
AZURE_CLI_YUM_REPO = """[azure-cli]
name=Azure CLI
baseurl=https://packages.microsoft.com/yumrepos/azure-cli
enabled=1
gpgcheck=1
gpgkey=https://packages.microsoft.com/keys/microsoft.asc
"""
AZURE_CLI_DEB_INSTALL_URL = "https://aka.ms/InstallAzureCLIDeb"
HELM_DOWNLOAD_URL = "https://get.helm.sh/helm-{version}-{os}-{arch}.tar.gz"
DEFAULT_HELM_VERSION = "v3.14.4"
