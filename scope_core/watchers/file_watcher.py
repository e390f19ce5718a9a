"""
File Watcher Module

This module monitors a project directory for file changes using the
watchfiles library and reports them as created/modified/deleted events.
"""

import os
import logging
import threading
from enum import Enum
from typing import Callable, Optional
from watchfiles import watch, Change

from scope_core.paths import normalize_path
from scope_core.scanner.filters import ExclusionFilter

# Set up logging
logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Enum for file event types."""
    CREATED = 'created'
    MODIFIED = 'modified'
    DELETED = 'deleted'


def _map_event_type(change_type: Change) -> EventType:
    """
    Maps watchfiles Change enum to our EventType enum.

    Args:
        change_type: The Change enum value from watchfiles

    Returns:
        EventType: The corresponding EventType value
    """
    mapping = {
        Change.added: EventType.CREATED,
        Change.modified: EventType.MODIFIED,
        Change.deleted: EventType.DELETED
    }
    return mapping.get(change_type, EventType.MODIFIED)


def start_file_watcher(callback: Callable[[str, str], None], watch_dir: str,
                       exclusion_filter: Optional[ExclusionFilter] = None,
                       stop_event: Optional[threading.Event] = None) -> None:
    """
    Watch a directory for file changes until stopped.

    Blocks the calling thread. Changes to excluded paths are dropped before
    the callback sees them; an exception raised by the callback is logged
    and watching continues.

    Args:
        callback: Called as ``callback(event_type, file_path)`` with event_type
            one of 'created', 'modified', 'deleted' and a normalized path
        watch_dir: The directory to watch
        exclusion_filter: Optional filter for paths to ignore
        stop_event: Setting this event ends the watch

    Raises:
        FileNotFoundError: If the watch_dir does not exist
        NotADirectoryError: If the watch_dir is not a directory
    """
    if not os.path.exists(watch_dir):
        logger.error(f"Directory not found: {watch_dir}")
        raise FileNotFoundError(f"Directory not found: {watch_dir}")

    if not os.path.isdir(watch_dir):
        logger.error(f"Path is not a directory: {watch_dir}")
        raise NotADirectoryError(f"Path is not a directory: {watch_dir}")

    try:
        logger.info(f"Starting file watcher on directory: {watch_dir}")
        for changes in watch(watch_dir, stop_event=stop_event):
            for change_type, file_path in changes:
                event_type = _map_event_type(change_type)
                path = normalize_path(file_path)

                if exclusion_filter is not None and exclusion_filter.is_excluded(path):
                    logger.debug(f"Ignoring change to excluded path: {path}")
                    continue

                logger.debug(f"File change detected: {event_type.value} - {path}")

                try:
                    callback(event_type.value, path)
                except Exception as e:
                    logger.error(f"Error in callback function: {str(e)}", exc_info=True)
    except KeyboardInterrupt:
        logger.info("File watcher stopped by user")
    except PermissionError as e:
        logger.error(f"Permission error: {str(e)}")
        raise

    logger.info(f"File watcher on {watch_dir} stopped")


class FileWatcherThread:
    """Runs start_file_watcher on a daemon thread that can be stopped."""

    def __init__(self, callback: Callable[[str, str], None], watch_dir: str,
                 exclusion_filter: Optional[ExclusionFilter] = None):
        self.callback = callback
        self.watch_dir = watch_dir
        self.exclusion_filter = exclusion_filter
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=start_file_watcher,
            args=(self.callback, self.watch_dir, self.exclusion_filter, self._stop_event),
            name='file-scope-watcher',
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
