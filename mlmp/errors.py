# mlmp/errors.py
"""Exceptions raised at the collaborator boundaries (stores, trainer feed)."""


class MlmpError(Exception):
    """Base exception for menu candidate extraction errors."""


class DictionaryUnavailableError(MlmpError):
    """The entree reference dictionary could not be queried."""


class WeightFetchError(MlmpError):
    """Trained feature weights could not be fetched."""


class FeedbackStoreError(MlmpError):
    """Prediction / label storage failed."""
