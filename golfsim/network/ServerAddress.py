"""
Simulator server address.

The host can be changed at runtime from the control endpoint; readers
always build URLs from the current value.
"""

import threading
from typing import Optional

import requests

from golfsim.constants import DEFAULT_SERVER_PORT, ping_endpoint
from golfsim.utils.AppLogging import logger


class ServerAddress:
    """
    Thread-safe holder for the simulator server host and port.
    """

    def __init__(self, host: Optional[str] = None, port: int = DEFAULT_SERVER_PORT):
        self._lock = threading.Lock()
        self._host = host or None
        self._port = port

    def get_host(self) -> Optional[str]:
        with self._lock:
            return self._host

    def get_port(self) -> int:
        with self._lock:
            return self._port

    def set_host(self, host: Optional[str], port: Optional[int] = None):
        """Change the server address. An empty host clears it."""
        host = (host or "").strip() or None
        with self._lock:
            changed = host != self._host or (port is not None and port != self._port)
            self._host = host
            if port is not None:
                self._port = port
            current = f"{self._host}:{self._port}"
        if changed:
            logger.info(f"[ServerAddress] Server set to {current}")

    def url(self, path: str) -> Optional[str]:
        """Absolute URL for *path*, or None while no host is set."""
        with self._lock:
            if not self._host:
                return None
            return f"http://{self._host}:{self._port}{path}"

    def ping(self, timeout: float = 3.0) -> bool:
        """True if the server answers /ping with a 2xx status."""
        url = self.url(ping_endpoint)
        if url is None:
            return False
        try:
            response = requests.get(url, timeout=timeout)
            return 200 <= response.status_code < 300
        except requests.RequestException as e:
            logger.debug(f"[ServerAddress] Ping {url} failed: {e}")
            return False
