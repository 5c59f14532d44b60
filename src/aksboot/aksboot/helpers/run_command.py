# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

# pylint: disable=missing-docstring

import shlex
import subprocess

from .spinner import Stage
from .logger import logger, is_verbose

MASKED_FIELDS = ["accessToken", "refreshToken", "client-key-data", "token"]


def format_command(command):
    return " ".join(shlex.quote(part) for part in command)


def trace_command(command):
    """Echo a command before it runs. Only visible when tracing is enabled."""
    logger.info("+ %s", format_command(command))


def run_shell_command(command, combine_std=True, mask_fields=None, cwd=None):
    trace_command(command)
    # if tracing, don't capture stderr
    stderr = None
    if combine_std:
        stderr = None if is_verbose() else subprocess.STDOUT
    output = subprocess.check_output(command, universal_newlines=True, stderr=stderr, cwd=cwd)
    log_output = mask(output, mask_fields if mask_fields is not None else MASKED_FIELDS)
    logger.info("%s returned:\n%s", " ".join(command), log_output)
    return output


def run_passthrough_command(command, cwd=None):
    """Run a command with inherited stdout and stderr and return its exit code."""
    trace_command(command)
    return subprocess.call(command, cwd=cwd)


def run_best_effort_command(command, cwd=None):
    """Run a diagnostic command whose failure is logged and otherwise ignored."""
    try:
        returncode = run_passthrough_command(command, cwd=cwd)
    except OSError as err:
        logger.warning("Skipped `%s`: %s", format_command(command), err)
        return None
    if returncode != 0:
        logger.warning("`%s` exited with code %d (ignored)", format_command(command), returncode)
    return returncode


def mask(output, mask_fields):
    """Mask all instances of mask_fields with "****" in JSON or YAML output."""
    if mask_fields and output:
        for field in mask_fields:
            output = mask_field(output, field)
    return output


def mask_field(output, key):
    """Mask all instances of key with "****" in JSON or YAML output."""
    lines = []
    for line in output.splitlines():
        if line.strip().replace('"', '').startswith(key + ": "):
            maybe_comma = "," if line.endswith(",") else ""
            lines.append(line.split(": ")[0] + ': "****"' + maybe_comma)
        else:
            lines.append(line)
    return "\n".join(lines)


def message_variants(template_msg):
    # Find the first word and assume it's a capitalized verb.
    verb, predicate = template_msg.split(" ", 1)
    begin_msg = f"{verb[:-1]}ing {predicate}" if verb.endswith("e") else f"{verb}ing {predicate}"
    end_msg = f"✓ {verb}d {predicate}" if verb.endswith("e") else f"✓ {verb}ed {predicate}"
    error_msg = f"✗ Failed to {verb.lower()} {predicate}"
    return begin_msg, end_msg, error_msg


def try_command(command, stage_msg, error_cls, error_msg=None, recommendation=None,
                include_error_stdout=False, combine_std=True):
    """Run a command inside a Stage, converting any failure into error_cls."""
    begin_msg, end_msg, failed_msg = message_variants(stage_msg)
    err_msg = error_msg or failed_msg
    with Stage(begin_msg, end_msg, failed_msg):
        try:
            return run_shell_command(command, combine_std=combine_std)
        except (subprocess.CalledProcessError, FileNotFoundError) as err:
            if include_error_stdout and getattr(err, "stdout", None):
                err_msg += f"\n{err.stdout}"
            raise error_cls(err_msg, recommendation) from err
