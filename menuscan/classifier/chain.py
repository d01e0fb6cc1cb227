"""
Fallback chain over classifier variants.
"""

import logging
from typing import Callable, Optional

from ..models.schema import Line, Word
from .classifier import Classifier, HeuristicClassifier
from .corrections import apply_corrections
from .errors import ClassificationError

log = logging.getLogger(__name__)


class ClassifierChain:
    """
    Try classifiers in order until one succeeds.

    A ClassificationError moves on to the next variant; the heuristic
    classifier is appended when missing, so the chain always produces labels.
    Correction filters run on whatever variant answered.
    """

    def __init__(
        self,
        classifiers: list[Classifier],
        logger: Optional[logging.Logger] = None,
        on_failure: Optional[Callable[[str], None]] = None,
    ):
        """
        Parameters:
        -----------
        classifiers : Variants, most preferred first
        logger : Logger to report through
        on_failure : Observability hook, called with a message per failure
        """
        self.classifiers = list(classifiers)
        if not any(isinstance(c, HeuristicClassifier) for c in self.classifiers):
            self.classifiers.append(HeuristicClassifier(logger=logger))
        self.log = logger or log
        self.on_failure = on_failure

    def classify(self, lines: list[Line]) -> tuple[list[Word], str]:
        """Return (corrected words, name of the variant used)."""
        for classifier in self.classifiers:
            try:
                words = classifier.classify(lines)
            except ClassificationError as e:
                message = f"{classifier.name} classifier failed: {e}"
                self.log.warning("%s; falling back", message)
                if self.on_failure:
                    self.on_failure(message)
                continue
            return apply_corrections(words, logger=self.log), classifier.name

        raise RuntimeError("No classifier produced labels")
