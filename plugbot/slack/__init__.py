"""
Slack adapter for the dispatcher.
"""

from .platform import SlackPlatform
from .scheduler import IntervalScheduler

__all__ = [
    'SlackPlatform',
    'IntervalScheduler',
]
