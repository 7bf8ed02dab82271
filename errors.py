"""Exceptions raised by the classifier, learner and analytics code."""


class SiftError(Exception):
    """Base exception for sift."""

    pass


class ValidationError(SiftError, ValueError):
    """A transaction is malformed or references a missing category."""

    pass


class PatternExistsError(SiftError):
    """An owner already has a pattern with the same kind and value."""

    pass
