# pmsfinder/state/__init__.py
"""
Batch job state.

Tracks pending and completed work for the resumable scrape and writes
output files so an interrupted run always leaves valid JSON behind.
"""

from .progress import ScrapeProgress, write_json_atomic, read_json_list

__all__ = [
    'ScrapeProgress',
    'write_json_atomic',
    'read_json_list',
]
