"""
Practice Module - A local server speaking the game protocol against a bot.

Used for offline play and end-to-end checks of the client. It is a separate
collaborator: the client engine never imports it. Matches are always casual.
"""

from .bot import BotPolicy, RandomPolicy, FixedPolicy
from .rules import PracticeMatch, determine_winner
from .server import PracticeTable, create_app

__all__ = [
    "BotPolicy",
    "RandomPolicy",
    "FixedPolicy",
    "PracticeMatch",
    "determine_winner",
    "PracticeTable",
    "create_app",
]
