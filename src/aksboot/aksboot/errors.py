# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
Error types raised by the aksboot stages.

Every fatal condition is a subclass of ``BootstrapError`` and carries an ``ErrorKind``.
Stages only raise; ``aksboot.__main__`` owns the mapping from kind to process exit code.
"""

from enum import Enum

from knack.util import CLIError


class ErrorKind(Enum):
    MISSING_ARGUMENT = "MissingArgument"
    DEPENDENCY_NOT_FOUND = "DependencyNotFound"
    TOOL_UNAVAILABLE = "ToolUnavailable"
    AUTHENTICATION_FAILED = "AuthenticationFailed"
    SUBSCRIPTION_SELECTION_FAILED = "SubscriptionSelectionFailed"
    CREDENTIAL_FETCH_FAILED = "CredentialFetchFailed"
    UNCLASSIFIED = "Unclassified"


EX_GENERIC = 1
EX_DEPENDENCY_NOT_FOUND = 2
EX_USAGE = 64
EX_INTERRUPTED = 130

EXIT_CODES = {
    ErrorKind.MISSING_ARGUMENT: EX_USAGE,
    ErrorKind.DEPENDENCY_NOT_FOUND: EX_DEPENDENCY_NOT_FOUND,
    ErrorKind.TOOL_UNAVAILABLE: EX_GENERIC,
    ErrorKind.AUTHENTICATION_FAILED: EX_GENERIC,
    ErrorKind.SUBSCRIPTION_SELECTION_FAILED: EX_GENERIC,
    ErrorKind.CREDENTIAL_FETCH_FAILED: EX_GENERIC,
    ErrorKind.UNCLASSIFIED: EX_GENERIC,
}


class BootstrapError(CLIError):
    """Base class for fatal bootstrap failures."""

    kind = ErrorKind.UNCLASSIFIED

    def __init__(self, error_msg, recommendation=None):
        super().__init__(error_msg)
        self.error_msg = error_msg
        self.recommendation = recommendation

    @property
    def exit_code(self):
        return exit_code_for(self.kind)

    def __str__(self):
        if self.recommendation:
            return f"{self.error_msg}\n{self.recommendation}"
        return self.error_msg


class MissingArgumentError(BootstrapError):
    kind = ErrorKind.MISSING_ARGUMENT


class DependencyNotFoundError(BootstrapError):
    kind = ErrorKind.DEPENDENCY_NOT_FOUND


class ToolUnavailableError(BootstrapError):
    kind = ErrorKind.TOOL_UNAVAILABLE


class AuthenticationFailedError(BootstrapError):
    kind = ErrorKind.AUTHENTICATION_FAILED


class SubscriptionSelectionFailedError(BootstrapError):
    kind = ErrorKind.SUBSCRIPTION_SELECTION_FAILED


class CredentialFetchFailedError(BootstrapError):
    kind = ErrorKind.CREDENTIAL_FETCH_FAILED


def exit_code_for(kind):
    """Returns the process exit code for an ErrorKind."""
    return EXIT_CODES.get(kind, EX_GENERIC)
