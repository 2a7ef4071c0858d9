from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Pattern, Union
import inspect
import logging
import re

logger = logging.getLogger(__name__)

ChatHandler = Callable[["re.Match[str]"], Union[str, Awaitable[str]]]


@dataclass
class Listener:
    pattern: Pattern[str]
    handler: ChatHandler


class ChatResponder:
    """Routes messages addressed to the bot to registered handlers.

    A message is addressed to the bot when it starts with the bot name,
    optionally prefixed with "@" and followed by ":" or ",", e.g.
    "hubot meet @alice" or "@hubot: explain maas".
    Only the first line is matched, and patterns are anchored at the start
    only, as Hubot does.
    """

    def __init__(self, robot_name: str = "hubot"):
        self.robot_name = robot_name
        self.listeners: List[Listener] = []
        self._address = re.compile(
            rf"^\s*@?{re.escape(robot_name)}[:,]?\s+(?P<command>.*)",
            re.IGNORECASE,
        )

    def respond(self, pattern: str) -> Callable[[ChatHandler], ChatHandler]:
        def decorator(handler: ChatHandler) -> ChatHandler:
            self.add_listener(pattern, handler)
            return handler
        return decorator

    def add_listener(self, pattern: str, handler: ChatHandler) -> None:
        self.listeners.append(Listener(re.compile(rf"^(?:{pattern})", re.IGNORECASE), handler))

    def command_text(self, message: str) -> Optional[str]:
        match = self._address.match(message or "")
        if not match:
            return None
        return match.group("command")

    async def dispatch(self, message: str) -> Optional[str]:
        """Run the first listener matching ``message`` and return its reply."""
        command = self.command_text(message)
        if command is None:
            return None
        for listener in self.listeners:
            match = listener.pattern.match(command)
            if not match:
                continue
            logger.info("Chat command matched %s", listener.pattern.pattern)
            reply = listener.handler(match)
            if inspect.isawaitable(reply):
                reply = await reply
            return reply
        return None
