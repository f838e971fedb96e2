from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Dict, List

from songrec.errors import ConfigurationError
from songrec.models.bagging import BaggingEnsemble
from songrec.models.base import Recommender
from songrec.models.collaborative_filtering import ItemBasedCF, UserBasedCF
from songrec.models.knn import KNN
from songrec.models.naive_bayes import NaiveBayes
from songrec.models.popularity import TopNPopular

TOP_N_POPULAR = "top_n_popular"
USER_BASED_CF = "user_cf"
ITEM_BASED_CF = "item_cf"
K_NEAREST_NEIGHBOURS = "knn"
NAIVE_BAYES = "naive_bayes"
BAGGING_PREFIX = "bagging_"

BASE_ALGORITHMS = [TOP_N_POPULAR, USER_BASED_CF, ITEM_BASED_CF, K_NEAREST_NEIGHBOURS, NAIVE_BAYES]

DISPLAY_NAMES: Dict[str, str] = {
    TOP_N_POPULAR: "Overall N-Popular Songs",
    USER_BASED_CF: "User-based collaborative filtering",
    ITEM_BASED_CF: "Item-based collaborative filtering",
    K_NEAREST_NEIGHBOURS: "K-Nearest Neighbours",
    NAIVE_BAYES: "Naive Bayes",
}


@dataclass(frozen=True, kw_only=True)
class ModelParams:
    n_recommendations: int = 10
    n_neighbours: int = 80
    weight_coefficient: float = 0.8
    normalization_coefficient: float = 8.0
    n_estimators: int = 5
    random_state: int = 42


def available_algorithms() -> List[str]:
    return BASE_ALGORITHMS + [BAGGING_PREFIX + name for name in BASE_ALGORITHMS]


def display_name(name: str) -> str:
    if name.startswith(BAGGING_PREFIX):
        return f"Bagging ({display_name(name[len(BAGGING_PREFIX):])})"
    return DISPLAY_NAMES.get(name, name)


def build_model(name: str, params: ModelParams | None = None) -> Recommender:
    """Instantiate an unfitted recommender by registry name."""
    params = params or ModelParams()

    if name.startswith(BAGGING_PREFIX):
        base = name[len(BAGGING_PREFIX):]
        if base not in BASE_ALGORITHMS:
            raise ConfigurationError(f"Unknown base algorithm for bagging: {base}")
        return BaggingEnsemble(
            base_factory=partial(build_model, base, params),
            n_recommendations=params.n_recommendations,
            n_estimators=params.n_estimators,
            random_state=params.random_state,
        )
    if name == TOP_N_POPULAR:
        return TopNPopular(n_recommendations=params.n_recommendations)
    if name == USER_BASED_CF:
        return UserBasedCF(
            n_recommendations=params.n_recommendations,
            weight_coefficient=params.weight_coefficient,
            normalization_coefficient=params.normalization_coefficient,
        )
    if name == ITEM_BASED_CF:
        return ItemBasedCF(n_recommendations=params.n_recommendations)
    if name == K_NEAREST_NEIGHBOURS:
        return KNN(n_recommendations=params.n_recommendations, n_neighbours=params.n_neighbours)
    if name == NAIVE_BAYES:
        return NaiveBayes(n_recommendations=params.n_recommendations)
    raise ConfigurationError(f"Unknown algorithm: {name}")
