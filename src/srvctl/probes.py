"""Application-level server probes.

Separate from pid liveness: a process can be alive and still not accept
connections or serve the expected content.
"""

from __future__ import annotations

import logging
import re
import socket

import requests

logger = logging.getLogger(__name__)


def is_listening(host: str, port: int, timeout: float = 2.0) -> bool:
    """Check whether something accepts TCP connections on host:port."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def validate_url(url: str, regex: str | None = None, timeout: float = 2.0) -> bool:
    """Fetch a URL and check the response.

    Args:
        url: URL to GET
        regex: Optional pattern the response body must match
        timeout: Request timeout in seconds

    Returns:
        True if the request succeeded with a 2xx status and the body matched
    """
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        logger.warning(f"Validation request to {url} failed: {e}")
        return False

    if not response.ok:
        logger.warning(f"Validation request to {url} returned {response.status_code}")
        return False

    if regex and not re.search(regex, response.text):
        logger.warning(f"Content of {url} did not match /{regex}/")
        return False

    logger.debug(f"Validated {url}")
    return True
