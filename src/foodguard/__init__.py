"""FoodGuard: streaming food-security risk analysis."""

__version__ = "0.1.0"
