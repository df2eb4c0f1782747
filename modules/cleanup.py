"""
modules/cleanup.py — Scheduled deletion of expired export files.

Bulk archives are written to EXPORT_DIR so the download survives reruns
without holding the bytes in session state. A background thread purges
files older than CLEANUP_CONFIG["max_age_seconds"] every
CLEANUP_CONFIG["interval_seconds"].
"""

from __future__ import annotations

import logging
import os
import threading
import time
import uuid

import streamlit as st

from config import CLEANUP_CONFIG, EXPORT_DIR

logger = logging.getLogger(__name__)


def save_export(data: bytes, suffix: str = ".zip", directory: str = EXPORT_DIR) -> str:
    """Write data to a uniquely named file in directory and return its path."""
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, f"{uuid.uuid4().hex}{suffix}")
    with open(path, "wb") as f:
        f.write(data)
    return path


def purge_expired(
    directory: str = EXPORT_DIR,
    max_age_seconds: float = CLEANUP_CONFIG["max_age_seconds"],
    now: float | None = None,
) -> list[str]:
    """
    Delete regular files in directory last modified more than max_age_seconds ago.

    Returns:
        Names of the deleted files
    """
    if not os.path.isdir(directory):
        return []

    now = time.time() if now is None else now
    deleted = []

    with os.scandir(directory) as entries:
        for entry in entries:
            try:
                if not entry.is_file():
                    continue
                if now - entry.stat().st_mtime <= max_age_seconds:
                    continue
                os.remove(entry.path)
            except FileNotFoundError:
                # Removed by someone else since the listing
                continue
            logger.info("Deleted expired file: %s", entry.name)
            deleted.append(entry.name)

    return deleted


class CleanupScheduler:
    """Runs purge_expired() on a daemon thread every interval_seconds until stopped."""

    def __init__(
        self,
        directory: str = EXPORT_DIR,
        interval_seconds: float = CLEANUP_CONFIG["interval_seconds"],
        max_age_seconds: float = CLEANUP_CONFIG["max_age_seconds"],
    ):
        self.directory = directory
        self.interval_seconds = interval_seconds
        self.max_age_seconds = max_age_seconds
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="export-cleanup", daemon=True)

    def start(self) -> "CleanupScheduler":
        self._thread.start()
        logger.info(
            "Cleanup of %s scheduled every %ss (max age %ss)",
            self.directory, self.interval_seconds, self.max_age_seconds,
        )
        return self

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        self._thread.join(timeout)

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            logger.debug("Running cleanup task...")
            try:
                purge_expired(self.directory, self.max_age_seconds)
            except OSError:
                # Keep the schedule alive; the next run retries
                logger.exception("Cleanup of %s failed", self.directory)


@st.cache_resource(show_spinner=False)
def get_cleanup_scheduler() -> CleanupScheduler:
    """One scheduler per server process, shared by every page and session."""
    return CleanupScheduler().start()
