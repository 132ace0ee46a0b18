"""Exceptions raised at the orchestration edge.

The task store never raises for missing tasks; everything here concerns
upstream services, configuration and the command/decision lifecycle.
"""


class EchoTasksError(Exception):
    """Base exception"""

    pass


class ConfigurationError(EchoTasksError):
    """Invalid or unreadable configuration"""

    pass


class UpstreamServiceError(EchoTasksError):
    """An external service failed; the user may retry"""

    pass


class TranscriptionError(UpstreamServiceError):
    """Speech-to-text request failed"""

    pass


class IntentServiceError(UpstreamServiceError):
    """Intent/entity extraction failed or returned unusable content"""

    pass


class DecisionNotFoundError(EchoTasksError):
    """No pending decision with the given id"""

    pass


class CommandInProgressError(EchoTasksError):
    """A previous command is still waiting for a decision"""

    pass
