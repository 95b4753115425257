"""Signal scoring and analysis result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict


class Signal(str, Enum):
    """Directional classification of the aggregated score."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


@dataclass
class SignalScore:
    """Result of one scoring pass.

    Attributes:
        score: Signed contribution of the pass.
        details: Human-readable rationale lines, in evaluation order.
    """

    score: float = 0.0
    details: list[str] = field(default_factory=list)

    def add(self, points: float, detail: str | None = None) -> None:
        """Add points and an optional rationale line."""
        self.score += points
        if detail:
            self.details.append(detail)


@dataclass
class RiskLevels:
    """Stop-loss / take-profit pair derived from volatility."""

    stop_loss: float
    take_profit: float
    details: list[str] = field(default_factory=list)


class AnalysisResult(BaseModel):
    """Outcome of one analysis run."""

    model_config = ConfigDict(frozen=True)

    signal: Signal
    score: float
    summary: str
    suggestion: str
    stop_loss: float
    take_profit: float
