"""
Preprocessing layer.

Selects the columns that feed the classifiers.
"""
