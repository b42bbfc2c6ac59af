"""
Modeling layer for training, caching and partitioning.

Provides the supported methods with their options, the trainer, the
fingerprinted model cache and the run-scoped training runner.
"""
