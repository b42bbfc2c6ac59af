"""
wle-report: Weight Lifting Exercise classification report.

This package loads the labeled sensor dataset, trains a fixed set of
classifiers through a fingerprinted model cache, evaluates them on a
held-out partition and renders an HTML report.
"""

from importlib.metadata import version

__version__ = version("wle-report")

__all__ = ["__version__"]
