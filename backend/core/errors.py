"""Error taxonomy shared by approaches and their collaborators."""


class ApproachError(Exception):
    """Base class for failures of an ask/chat run."""

    pass


class InvalidInputError(ApproachError, ValueError):
    """Raised for a blank question, blank approach selector or bad options."""

    pass


class UnknownApproachError(ApproachError, LookupError):
    """Raised when no approach is registered for a (name, type) pair."""

    def __init__(self, name: str, rag_type: object):
        self.name = name
        self.rag_type = rag_type
        super().__init__(f"Invalid combination for approach [{name}] and rag type [{rag_type}]")


class UnsupportedOperationError(ApproachError, NotImplementedError):
    """Raised when an approach cannot perform the requested operation."""

    pass


class CollaboratorError(ApproachError):
    """Raised when the search index or the language model fails."""

    pass


class SearchError(CollaboratorError):
    """Raised when retrieval fails or returns malformed data."""

    pass


class GenerationError(CollaboratorError):
    """Raised when a completion call fails or returns malformed data."""

    pass


class ConfigurationError(Exception):
    """Raised when a collaborator cannot be built from settings."""

    pass
