"""
Pytest fixtures for Splash tests.
"""

import pytest

from splash_engine.models import Card, GameState, Player


def make_card(rank: str, suit: str = '♠', deck: int = 0) -> Card:
    return Card(id=f"{rank}{suit}-{deck}", rank=rank, suit=suit)


@pytest.fixture
def card():
    """Card factory: card('7', '♥') -> Card with a predictable id."""
    return make_card


@pytest.fixture
def four_players() -> GameState:
    """An undealt four-seat state with empty zones."""
    return GameState(players=[
        Player(name="Alice", emoji="🐳"),
        Player(name="Bob", emoji="🐙"),
        Player(name="Charlie", emoji="🦀"),
        Player(name="Dana", emoji="🐠"),
    ])
