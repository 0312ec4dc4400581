"""tgterm -- Drive a local terminal window from a Telegram chat.

A single pinned owner authenticates with a time-based one-time password
and then types into a terminal window on this machine by sending chat
messages. Each command is answered with a fresh screenshot of the window.
"""

__version__ = "0.1.0"
