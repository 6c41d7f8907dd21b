"""Custom exception classes for the vault server."""


class VaultException(Exception):
    """
    Base exception class for all vault server errors.
    """
    pass


class NotAuthenticatedError(VaultException):
    """
    Raised when the caller presents no usable principal.
    """
    pass


class ObjectAlreadyExistsError(VaultException):
    """
    Raised when chunk 0 is written for a name that already exists.
    """
    pass


class ObjectNotFoundError(VaultException):
    """
    Raised when a requested object or chunk does not exist.
    """
    pass


class ChunkOrderError(VaultException):
    """
    Raised when a chunk index is not the next expected index.
    """
    pass


class AccessDeniedError(VaultException):
    """
    Raised when a non-owner lacks an active grant for the requested capability.
    """
    pass


class InvalidShareError(VaultException):
    """
    Raised when a grant targets a malformed principal or the owner.
    """
    pass


class PermissionNotFoundError(VaultException):
    """
    Raised when revoking a grant that does not exist.
    """
    pass


class InvalidPrincipalError(VaultException):
    """
    Raised when a principal named in a path or query is malformed.
    """
    pass
