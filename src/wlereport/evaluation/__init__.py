"""
Evaluation layer.

Held-out metrics, the HTML report and submission files.
"""
