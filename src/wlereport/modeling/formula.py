"""
Model formulas.

A formula names the label column and the predictors, written as
``label ~ .`` (every other column) or ``label ~ a + b + c``.
"""

import re
from dataclasses import dataclass

import pandas as pd

from wlereport.errors import TrainingError

_TERM = re.compile(r"^[A-Za-z_.][A-Za-z0-9_.]*$")


@dataclass(frozen=True)
class Formula:
    """
    Parsed model formula.

    Attributes:
        label: Response (label) column.
        features: Predictor columns, or None for "all other columns".
    """

    label: str
    features: tuple[str, ...] | None = None

    @classmethod
    def parse(cls, text: "str | Formula") -> "Formula":
        """
        Parse ``label ~ rhs``.

        Raises:
            TrainingError: If the formula is malformed.
        """
        if isinstance(text, Formula):
            return text

        lhs, sep, rhs = str(text).partition("~")
        lhs, rhs = lhs.strip(), rhs.strip()
        if not sep or not lhs or not rhs:
            msg = f"Malformed formula {text!r}: expected 'label ~ predictors'"
            raise TrainingError(msg)
        if not _TERM.match(lhs):
            msg = f"Malformed formula {text!r}: invalid label term {lhs!r}"
            raise TrainingError(msg)

        if rhs == ".":
            return cls(label=lhs)

        terms = tuple(t.strip() for t in rhs.split("+"))
        bad = [t for t in terms if not _TERM.match(t) or t == "."]
        if bad:
            msg = f"Malformed formula {text!r}: invalid predictor terms {bad}"
            raise TrainingError(msg)
        if lhs in terms:
            msg = f"Malformed formula {text!r}: label appears among predictors"
            raise TrainingError(msg)

        return cls(label=lhs, features=terms)

    def feature_columns(self, df: pd.DataFrame) -> list[str]:
        """
        Resolve predictor columns against a frame.

        Raises:
            TrainingError: If the label or a named predictor is missing.
        """
        if self.label not in df.columns:
            msg = f"Label column '{self.label}' not in training data"
            raise TrainingError(msg)

        if self.features is None:
            return [c for c in df.columns if c != self.label]

        missing = [c for c in self.features if c not in df.columns]
        if missing:
            msg = f"Formula predictors missing from training data: {missing}"
            raise TrainingError(msg)
        return list(self.features)

    def __str__(self) -> str:
        rhs = "." if self.features is None else " + ".join(self.features)
        return f"{self.label} ~ {rhs}"
