# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
Helper functions for logging and verbosity.
"""

import logging
import os
from knack.log import get_logger

from .constants import RUN_VERBOSE

logger = get_logger()  # pylint: disable=invalid-name

TRUTHY_VALUES = ("1", "true", "yes", "on")


def is_verbose():
    """Return True if any logger handler has a level less than or equal to logging.INFO."""
    return any(handler.level <= logging.INFO for handler in logger.handlers)


def verbose_requested(environ=None):
    """Return True if command tracing was requested through the RUN_VERBOSE environment variable."""
    environ = os.environ if environ is None else environ
    return environ.get(RUN_VERBOSE, "0").strip().lower() in TRUTHY_VALUES
