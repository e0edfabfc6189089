"""
Bot Policy - How the practice opponent picks a gesture.

A BotPolicy looks at the match so far and returns one gesture per round.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
import random

from ..protocol import Gesture

if TYPE_CHECKING:
    from .rules import PracticeMatch


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    Implementations can range from uniform random play to opponent
    modelling over the match history.
    """

    @abstractmethod
    def select_gesture(self, match: PracticeMatch) -> Gesture:
        """
        Select the bot's gesture for the match's current round.

        Args:
            match: The match in progress (rounds played so far)

        Returns:
            The gesture to play
        """
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(BotPolicy):
    """
    Random policy - picks each gesture with equal probability.

    Used for:
    - Practice play
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_gesture(self, match: PracticeMatch) -> Gesture:
        return self.rng.choice(list(Gesture))


class FixedPolicy(BotPolicy):
    """
    Fixed policy - always plays the same gesture.

    Used for:
    - Deterministic testing
    """

    def __init__(self, gesture: Gesture):
        self.gesture = gesture

    def select_gesture(self, match: PracticeMatch) -> Gesture:
        return self.gesture
