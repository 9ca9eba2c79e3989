"""
Remote HSV threshold fetcher.

Polls the simulator server at a fixed interval and swaps new thresholds
into the shared ThresholdStore. A failed fetch (network error, non-200,
malformed body) leaves the active thresholds untouched.
"""

import threading
from typing import Optional

import requests

from golfsim.constants import hsv_endpoint
from golfsim.detection.ThresholdConfig import ThresholdConfig, ThresholdPayloadError, ThresholdStore
from golfsim.network.ServerAddress import ServerAddress
from golfsim.utils.AppLogging import logger


class ConfigFetcher:
    """
    Periodically refresh ThresholdStore from ``GET /get-hsv``.

    Stoppable and restartable; no update is applied after stop_fetching()
    returns.
    """

    def __init__(
        self,
        store: ThresholdStore,
        server: ServerAddress,
        interval: float = 5.0,
        timeout: float = 5.0
    ):
        """
        Args:
            store: Shared threshold cell to update
            server: Simulator server address
            interval: Seconds between fetches
            timeout: HTTP timeout per request
        """
        self.store = store
        self.server = server
        self.interval = interval
        self.timeout = timeout

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        # Serializes store writes against stop_fetching()
        self._apply_lock = threading.Lock()

        self.total_fetches = 0
        self.failed_fetches = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start_fetching(self):
        """Start polling in a background thread (first fetch immediately)."""
        if self.is_running:
            return

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._poll_loop,
            args=(self._stop_event,),
            name="ConfigFetcher",
            daemon=True
        )
        self._thread.start()
        logger.info(f"[ConfigFetcher] Started (interval={self.interval}s)")

    def stop_fetching(self):
        """Stop polling. Safe to call when not running."""
        with self._apply_lock:
            self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=self.timeout + 1.0)
        self._thread = None
        logger.info("[ConfigFetcher] Stopped")

    def _poll_loop(self, stop_event: threading.Event):
        """Polling loop for threshold changes."""
        while not stop_event.is_set():
            try:
                self._fetch_and_apply(stop_event)
            except Exception as e:
                logger.error(f"[ConfigFetcher] Unexpected error: {e}", exc_info=True)

            stop_event.wait(self.interval)

    def fetch_once(self) -> bool:
        """
        Fetch and apply thresholds synchronously.

        Returns:
            True if a valid config was received (changed or not)
        """
        return self._fetch_and_apply(None)

    def _fetch_and_apply(self, stop_event: Optional[threading.Event]) -> bool:
        new_config = self._fetch()
        if new_config is None:
            return False

        with self._apply_lock:
            if stop_event is not None and stop_event.is_set():
                return False
            self.store.update(new_config)
        return True

    def _fetch(self) -> Optional[ThresholdConfig]:
        url = self.server.url(hsv_endpoint)
        if url is None:
            logger.debug("[ConfigFetcher] Server IP is not set, skipping fetch")
            return None

        self.total_fetches += 1
        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            self.failed_fetches += 1
            logger.warning(f"[ConfigFetcher] HSV request error: {e}")
            return None

        if response.status_code != 200:
            self.failed_fetches += 1
            logger.warning(f"[ConfigFetcher] Response was not successful: {response.status_code}")
            return None

        try:
            return ThresholdConfig.from_payload(response.json())
        except (ValueError, ThresholdPayloadError) as e:
            self.failed_fetches += 1
            logger.warning(f"[ConfigFetcher] HSV parsing error: {e}")
            return None
