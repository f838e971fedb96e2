from songrec.models.bagging import BaggingEnsemble, bootstrap_resample
from songrec.models.base import RecommendationMap, Recommender
from songrec.models.collaborative_filtering import ItemBasedCF, UserBasedCF
from songrec.models.knn import KNN
from songrec.models.naive_bayes import NaiveBayes
from songrec.models.popularity import TopNPopular
from songrec.models.registry import ModelParams, available_algorithms, build_model

__all__ = [
    "Recommender",
    "RecommendationMap",
    "TopNPopular",
    "UserBasedCF",
    "ItemBasedCF",
    "KNN",
    "NaiveBayes",
    "BaggingEnsemble",
    "bootstrap_resample",
    "ModelParams",
    "available_algorithms",
    "build_model",
]
