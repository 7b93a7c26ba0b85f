"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator


class RuleConfig(BaseModel):
    """Configuration for deck composition, deal sizes and session timing."""

    deck_count: int = Field(
        default=2,
        ge=1,
        le=4,
        description="Number of standard 52-card decks shuffled together"
    )
    joker_count: int = Field(
        default=4,
        ge=0,
        le=8,
        description="Number of jokers added to the deck"
    )
    table_down_count: int = Field(
        default=4,
        ge=0,
        le=4,
        description="Face-down table cards dealt to each player"
    )
    table_up_count: int = Field(
        default=4,
        ge=0,
        le=4,
        description="Face-up table cards dealt to each player"
    )
    hand_size: int = Field(
        default=11,
        ge=1,
        description="Cards dealt to each player's hand"
    )
    min_players: int = Field(
        default=2,
        ge=2,
        le=8,
        description="Minimum number of seats required to start"
    )
    max_players: int = Field(
        default=5,
        ge=2,
        le=8,
        description="Maximum number of seats a deal is sized for"
    )
    heartbeat_interval: float = Field(
        default=30.0,
        gt=0,
        description="Seconds between client pings"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't fall below minimum and fits the deck."""
        min_players = info.data.get('min_players', 2)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        deck_size = info.data.get('deck_count', 2) * 52 + info.data.get('joker_count', 4)
        per_player = (
            info.data.get('table_down_count', 4)
            + info.data.get('table_up_count', 4)
            + info.data.get('hand_size', 11)
        )
        # one extra card seeds the pile
        if v * per_player + 1 > deck_size:
            raise ValueError(
                f'max_players ({v}) needs {v * per_player + 1} cards, deck has {deck_size}'
            )
        return v

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_players

    def get_deck_size(self) -> int:
        """Get the total number of cards in the deck."""
        return self.deck_count * 52 + self.joker_count

    def cards_per_player(self) -> int:
        return self.table_down_count + self.table_up_count + self.hand_size


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
