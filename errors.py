"""
Every failure raised by minigit derives from MinigitError, so the command line can
catch one type and turn it into a message and a non-zero exit status.
"""


class MinigitError(Exception):
    pass


class MalformedDigest(MinigitError):
    """Hex digest with the wrong length or non-hex characters."""


class MalformedObject(MinigitError):
    """Object bytes that don't follow `<type> <len>\\0<payload>`."""


class TruncatedTree(MalformedObject):
    """Tree payload that ends in the middle of an entry."""


class WrongObjectType(MinigitError):
    pass


class ObjectNotFound(MinigitError):
    pass


class StoreIOError(MinigitError):
    pass


class DanglingReference(MinigitError):
    """A commit names a tree or parent that isn't in the store."""


class RepositoryError(MinigitError):
    pass


class CloneError(MinigitError):
    pass
