"""
Watchers package for monitoring changes to the scanned directory.
"""

from scope_core.watchers.file_watcher import start_file_watcher, FileWatcherThread, EventType

__all__ = ['start_file_watcher', 'FileWatcherThread', 'EventType']
