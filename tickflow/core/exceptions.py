"""Custom exceptions for pipeline, connector and storage operations."""


class TickflowError(Exception):
    """Base class for every error raised by tickflow."""

    pass


class PipelineConfigError(TickflowError, ValueError):
    """Raised when a pipeline is configured with invalid parameters."""

    pass


class ChannelClosedError(TickflowError):
    """Raised when sending on a channel whose other end is gone."""

    def __init__(self, message: str | None = None):
        self.message = (
            f"Channel closed: {message}" if message else "Channel closed"
        )
        super().__init__(self.message)


class SourceError(TickflowError):
    """A source could not continue its run."""

    def __init__(self, message: str | None = None):
        self.message = f"Source failed: {message}" if message else "Source failed"
        super().__init__(self.message)


class SinkError(TickflowError):
    """A sink failed to handle one batch."""

    def __init__(self, sink_name: str, message: str | None = None):
        self.sink_name = sink_name
        self.message = (
            f"Sink '{sink_name}' failed: {message}"
            if message
            else f"Sink '{sink_name}' failed"
        )
        super().__init__(self.message)


class ConfigError(TickflowError):
    """Raised when required configuration is missing or malformed."""

    pass
