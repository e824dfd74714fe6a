class QuizBankError(Exception):
    pass


class ParseError(QuizBankError):
    """The uploaded export is not well-formed XML or lacks the question container."""


class ValidationError(QuizBankError):
    pass


class NotFoundError(QuizBankError):
    pass


class StorageError(QuizBankError):
    """The database (or image store) failed while reading or writing."""
