"""The bot core: session state, request routing and serialization.

Public API:
    Session -- all mutable state of the running bot
    CommandRouter -- handles one inbound request end to end
    SingleFlightExecutor -- runs requests strictly one at a time
    BotApp -- wires the gateway, executor and router together
"""

from tgterm.bot.app import BotApp
from tgterm.bot.executor import SingleFlightExecutor
from tgterm.bot.router import CommandRouter, RouterTiming
from tgterm.bot.session import Session

__all__ = ["BotApp", "CommandRouter", "RouterTiming", "Session", "SingleFlightExecutor"]
