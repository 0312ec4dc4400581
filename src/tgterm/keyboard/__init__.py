"""Keystroke encoding for tgterm.

Turns a chat message into the ordered key events sent to the connected
window. Plain characters are typed as-is; a small emoji vocabulary adds
modifiers, Escape and Enter, and ``\\n``/``\\t`` escapes add Return and Tab.

Public API:
    tokenize -- classify text into typed tokens
    encode -- fold tokens into key events plus the trailing-newline decision
"""

from tgterm.keyboard.encoder import encode
from tgterm.keyboard.tokenizer import Token, TokenKind, tokenize

__all__ = ["Token", "TokenKind", "encode", "tokenize"]
