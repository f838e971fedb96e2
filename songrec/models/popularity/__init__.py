from .ranker import TopNPopular

__all__ = [
    "TopNPopular",
]
