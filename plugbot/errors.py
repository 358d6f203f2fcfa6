"""
Exception types raised by the dispatch engine.
"""


class PlugbotError(Exception):
    """Base class for all dispatch engine errors."""


class PluginDefinitionError(PlugbotError, ValueError):
    """A command, event, or job was declared with invalid metadata."""


class EventConfigurationError(PlugbotError):
    """An event identifier does not classify into exactly one category."""


class PlatformStartError(PlugbotError):
    """The chat platform failed to start."""
