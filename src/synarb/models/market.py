"""Live market observation models."""

from pydantic import BaseModel, Field


class OddsPair(BaseModel):
    """Home/away quote of a market.

    Values are either American prices (|value| >= 100) or point lines
    such as spreads (e.g. -3.5).
    """

    model_config = {"frozen": True}

    home: float
    away: float
    draw: float | None = None


class MarketTick(BaseModel):
    """A single live observation of one market.

    Attributes:
        game_id: Game/event identifier (e.g. "LAL-BOS-2024").
        timestamp: Observation time in epoch milliseconds.
        exchange: Source book or exchange.
        market: Market type within the game (e.g. "spread-1q").
        sport: Sport code (e.g. "nba").
        odds: Home/away quote.
        volume: Traded volume, if reported.
        liquidity: Available liquidity, if reported.
    """

    model_config = {"frozen": True}

    game_id: str
    timestamp: int
    exchange: str
    market: str
    sport: str
    odds: OddsPair
    volume: float | None = None
    liquidity: float | None = None

    @property
    def market_id(self) -> str:
        """Identifier used for price histories and relationship lookups."""
        return f"{self.game_id}-{self.market}"


class GameContext(BaseModel):
    """In-game state used to adjust the fitted relationship.

    Attributes:
        period: Current period (1-based).
        time_remaining: Minutes remaining in the current period.
        pace: Possessions per 48 minutes.
        run_differential: Points differential of the current run.
        key_player_fouls: Fouls on the key player.
        home_score: Home team score.
        away_score: Away team score.
    """

    model_config = {"frozen": True}

    period: int = Field(default=1, ge=1)
    time_remaining: float = Field(default=12.0, ge=0.0)
    pace: float = 100.0
    run_differential: float = 0.0
    key_player_fouls: int = Field(default=0, ge=0)
    home_score: int = 0
    away_score: int = 0
