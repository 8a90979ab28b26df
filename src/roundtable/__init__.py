"""
Roundtable - concurrent dispatch of user messages to multiple LLM agents.

Each user message in a conversation is fanned out to every enabled agent.
Replies and user-safe failure notices are persisted back into the shared
history, with per-agent status events and an aggregate result per round.
"""

__version__ = "1.0.0"
__author__ = "Roundtable Development Team"

from .models import *
from .services import *

__all__ = [
    "models",
    "services",
    "lib",
    "cli"
]
