"""
Error taxonomy for the pastebin service.

Every per-request failure is a PasteError. The server turns each one into a
JSON body of the form {"error": "<message>"} with the class's status code.
"""

from typing import Dict, Optional


class PasteError(Exception):
    """Base class for all recoverable, per-request errors"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.message}


class AuthError(PasteError):
    """Missing or incorrect operator credentials"""

    status_code = 401

    def __init__(self, message: str = "401 Unauthorized", realm: Optional[str] = None):
        super().__init__(message)
        self.realm = realm

    @property
    def headers(self) -> Dict[str, str]:
        return {"WWW-Authenticate": f'Basic realm="{self.realm or ""}"'}


class InvalidPasteId(PasteError):
    """Identifier is malformed or would resolve outside the storage root"""

    status_code = 404


class PasteNotFound(PasteError):
    status_code = 404


class PasteExistsError(PasteError):
    """A paste with this identifier is already stored"""

    status_code = 409


class PasteTooLarge(PasteError):
    status_code = 413


class InvalidEndpoint(PasteError):
    """Request method not served on this path"""

    status_code = 405


class StorageError(PasteError):
    status_code = 500


class RenderError(PasteError):
    status_code = 500


class RandomnessFailure(PasteError):
    """The secure random source could not supply bytes"""

    status_code = 503


class ConfigError(Exception):
    """Invalid startup configuration; fatal, never a per-request error"""
