"""
Data ingestion layer.

Loads the labeled training export and the unlabeled submission export.
"""
