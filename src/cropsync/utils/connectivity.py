import socket
import urllib.request
import urllib.error

from cropsync.config import CONNECTIVITY_CHECK_URL, CONNECTIVITY_TIMEOUT_SECONDS
from cropsync.utils.logger import logger

# Public DNS resolver used to confirm a network route exists
LINK_CHECK_HOST = ("8.8.8.8", 53)


def has_network_link(timeout: float = CONNECTIVITY_TIMEOUT_SECONDS) -> bool:
    """True if a TCP connection to a public resolver can be opened."""
    try:
        with socket.create_connection(LINK_CHECK_HOST, timeout=timeout):
            return True
    except OSError as e:
        logger.debug(f"Connectivity: no network link: {e}")
        return False


def is_internet_reachable(url: str = CONNECTIVITY_CHECK_URL, timeout: float = CONNECTIVITY_TIMEOUT_SECONDS) -> bool:
    """True if the check URL answers with a non-error HTTP status."""
    try:
        req = urllib.request.Request(url, method="HEAD", headers={'User-Agent': 'CropSync/1.0'})
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return 200 <= response.status < 400
    except urllib.error.URLError as e:
        logger.debug(f"Connectivity: internet unreachable: {e}")
        return False
    except Exception as e:
        logger.debug(f"Connectivity: reachability check failed: {e}")
        return False


def is_online() -> bool:
    """
    Best-effort connectivity check: network link AND internet reachability.

    Never raises and never caches; call it on every sync decision.
    """
    online = has_network_link() and is_internet_reachable()
    logger.info(f"Connectivity: {'online' if online else 'offline'}")
    return online
