"""Per-difficulty search settings."""

from dataclasses import dataclass
from typing import Optional

from src.core.shared_types import Difficulty


@dataclass(frozen=True)
class EvaluationWeights:
    material: float
    position: float
    mobility: float
    center: float


@dataclass(frozen=True)
class DifficultyProfile:
    """
    * depth: plies searched by minimax
    * randomization: probability of discarding the best move for one of the top-k alternatives
    * top_k: how many alternatives are eligible. None means "the better half of all moves"
    """

    depth: int
    randomization: float
    top_k: Optional[int]
    weights: EvaluationWeights

    def alternatives(self, num_moves: int) -> int:
        if self.top_k is None:
            return max(1, (num_moves + 1) // 2)
        return self.top_k


DIFFICULTY_PROFILES: dict[Difficulty, DifficultyProfile] = {
    Difficulty.EASY: DifficultyProfile(
        depth=2,
        randomization=0.30,
        top_k=3,
        weights=EvaluationWeights(material=1.0, position=0.5, mobility=0.0, center=0.0),
    ),
    Difficulty.MEDIUM: DifficultyProfile(
        depth=3,
        randomization=0.15,
        top_k=None,
        weights=EvaluationWeights(material=1.0, position=1.0, mobility=2.0, center=10.0),
    ),
    Difficulty.HARD: DifficultyProfile(
        depth=4,
        randomization=0.0,
        top_k=1,
        weights=EvaluationWeights(material=1.0, position=1.0, mobility=4.0, center=15.0),
    ),
}
