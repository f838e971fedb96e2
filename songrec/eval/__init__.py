from .eval import AccuracyReport, RunResult, accuracy_report, accuracy_score, evaluate

__all__ = [
    "AccuracyReport",
    "RunResult",
    "accuracy_report",
    "accuracy_score",
    "evaluate",
]
