# pmsfinder/resources/__init__.py
"""
Offline batch jobs.

Each job can be run with ``python -m pmsfinder.resources.<job>`` or called
from code with the usual log / stop-flag / stats callbacks.
"""
