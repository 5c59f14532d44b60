# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
Network helpers for downloading installers and release archives.
"""
import ssl
from urllib.request import urlopen


def ssl_context():
    """Returns an SSL context that requires TLS 1.2 or later."""
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    return context


def urlretrieve(url, filename):
    """Retrieves the contents of a URL to a file."""
    with urlopen(url, context=ssl_context()) as req, open(filename, "wb") as out:
        out.write(req.read())
