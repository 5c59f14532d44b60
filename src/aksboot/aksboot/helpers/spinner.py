# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

# pylint: disable=missing-docstring

from .logger import logger


class Stage():
    """Logs the begin, end and failure messages of one bootstrap step."""

    def __init__(self, begin_msg="In Progress", end_msg="✓ Finished", error_msg=None):
        self.begin_msg, self.end_msg, self.error_msg = begin_msg, end_msg, error_msg

    def __enter__(self):
        logger.info(self.begin_msg)
        return self

    def __exit__(self, _type, value, traceback):
        if traceback:
            logger.debug("%s interrupted: %s", self.begin_msg, value)
            if self.error_msg:
                logger.error(self.error_msg)
        else:
            logger.warning(self.end_msg)
