"""Answer evaluation for every card type."""

from recall.evaluation.evaluator import Verdict, evaluate, normalize_text

__all__ = ["Verdict", "evaluate", "normalize_text"]
