"""Exceptions raised by the hook engine."""


class SessionHooksError(Exception):
    """Base class for hook engine errors."""


class HookBlockedError(SessionHooksError):
    """A before-tool hook vetoed the tool call.

    The message is the block reason and is meant to be shown to the user as
    the tool failure.
    """

    def __init__(self, reason: str, *, event: str = "", tool_name: str = ""):
        super().__init__(reason)
        self.reason = reason
        self.event = event
        self.tool_name = tool_name
