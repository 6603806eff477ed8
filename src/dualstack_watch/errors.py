class DualstackWatchError(Exception):
    """Base class for all dualstack_watch errors."""


class ConfigError(DualstackWatchError):
    """Invalid startup configuration."""


class ResolutionError(DualstackWatchError):
    """The target hostname could not be resolved to an IPv4 and an IPv6 address."""


class PipelineError(DualstackWatchError):
    """
    An internal channel lost its consumer while a producer still needed it.

    Unrecoverable: the whole process terminates with a non-zero status.
    """


class ChannelClosed(DualstackWatchError):
    """Raised on send when the receiving side of a channel has gone away."""
