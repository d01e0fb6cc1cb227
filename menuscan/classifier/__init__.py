"""Classifier module."""
from .chain import ClassifierChain
from .classifier import Classifier, HeuristicClassifier, SourceTagClassifier
from .corrections import apply_corrections, correct_category
from .errors import ClassificationError, ParseError, ProviderUnavailable
from .remote import RemoteClassifier, RemoteClassifierConfig

__all__ = [
    "Classifier", "ClassifierChain", "HeuristicClassifier", "SourceTagClassifier",
    "RemoteClassifier", "RemoteClassifierConfig", "apply_corrections",
    "correct_category", "ClassificationError", "ParseError", "ProviderUnavailable",
]
