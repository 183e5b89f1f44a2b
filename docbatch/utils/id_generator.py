"""
ID generator utility functions for docbatch.

Client identifiers follow the pattern python-<uuid4>@<hostname>-<pid>.
"""

import os
import socket
import uuid


def create_client_uid() -> str:
    """Generate a unique id for one client instance.

    Raises:
        OSError: If the hostname cannot be determined.
    """
    hostname = socket.gethostname()
    return f"python-{uuid.uuid4()}@{hostname}-{os.getpid()}"
