"""
Synthetic storefront ratings derived from list position.
"""
import random
from typing import Dict, Any, Optional

from catalog.models.entities import Product

MIN_SCORE = 9.0
MAX_SCORE = 9.9
MIN_STARS = 4.0
MAX_STARS = 5.0

POSITION_STEP = 0.05
MAX_JITTER = 0.02
# Jitter is drawn in thousandths
JITTER_STEPS = round(MAX_JITTER * 1000)

BADGES = {
    1: "#1 MEJOR OPCIÓN 2024",
    3: "#3 MEJOR VALOR 2024",
}


class ScoreGenerator:
    """Position-based score, stars and label with a little random jitter."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate_score(self, position: int) -> float:
        base = max(MAX_SCORE - (position - 1) * POSITION_STEP, MIN_SCORE)
        jitter = self.rng.randint(-JITTER_STEPS, JITTER_STEPS) / 1000
        return round(min(MAX_SCORE, max(MIN_SCORE, base + jitter)), 1)

    def generate_stars(self, score: float) -> float:
        normalized = (score - MIN_SCORE) / (MAX_SCORE - MIN_SCORE)
        stars = MIN_STARS + normalized * (MAX_STARS - MIN_STARS)
        # Halves only
        return max(MIN_STARS, min(MAX_STARS, round(stars * 2) / 2))

    def generate_quality_label(self, score: float) -> str:
        if score >= 9.7:
            return "Excepcional"
        if score >= 9.4:
            return "Excelente"
        if score >= 9.1:
            return "Genial"
        return "Bueno"

    def generate_product_rating(self, position: int, product: Product) -> Dict[str, Any]:
        score = self.generate_score(position)
        return {
            "score": score,
            "stars": self.generate_stars(score),
            "label": self.generate_quality_label(score)
        }

    def generate_special_badge(self, position: int) -> Optional[str]:
        return BADGES.get(position)
