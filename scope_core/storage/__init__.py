"""
Storage module for saved file trees.
"""
from scope_core.storage.json_storage import JSONTreeStorage

__all__ = ['JSONTreeStorage']
