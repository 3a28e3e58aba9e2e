"""Exception hierarchy for the recommendation engine."""


class BookwiseError(Exception):
    """Base class for all errors raised by bookwise."""


class InvalidRequestError(BookwiseError, ValueError):
    """A caller passed arguments the engine cannot act on (programming error)."""


class RecommenderError(BookwiseError):
    """The remote recommender could not produce a usable answer."""
