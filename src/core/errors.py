"""Taxonomía de errores del Core.

Por qué una jerarquía propia:
- La capa web mapea cada familia a un status HTTP sin conocer detalles internos.
- `public_message` es lo único que llega al usuario; nunca trazas ni excepciones crudas.
"""

from __future__ import annotations


class LogoTestError(Exception):
    """Base de todos los errores tipados del proyecto."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.public_message = message


# --- Validation (400): user-correctable, reported before any network call.


class ValidationError(LogoTestError):
    kind = "validation_error"
    status_code = 400


class MissingParameterError(ValidationError):
    kind = "missing_parameter"


class InvalidDomainError(ValidationError):
    kind = "invalid_domain"


class UnsupportedSkinError(ValidationError):
    kind = "unsupported_skin"


class InvalidLogoReferenceError(ValidationError):
    kind = "invalid_logo_reference"


# --- Fetch (502/504): remote or network failures, never retried automatically.


class FetchError(LogoTestError):
    kind = "fetch_error"
    status_code = 502


class FetchTimeoutError(FetchError):
    kind = "timeout"
    status_code = 504


class UnreachableHostError(FetchError):
    kind = "unreachable_host"


class TooLargeError(FetchError):
    kind = "too_large"


class NonHtmlResponseError(FetchError):
    kind = "non_html_response"


class TooManyRedirectsError(FetchError):
    kind = "too_many_redirects"


class ForbiddenRedirectError(FetchError):
    """A redirect pointed at a host or port that is never fetched."""

    kind = "forbidden_redirect"


class UndecodableResponseError(FetchError):
    """The body could not be decoded (e.g. a broken gzip stream)."""

    kind = "undecodable_response"


class UpstreamStatusError(FetchError):
    kind = "upstream_status"

    def __init__(self, message: str, *, upstream_status: int) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


# --- Substitution (422): the page or the logo does not have the expected shape.


class SubstitutionError(LogoTestError):
    kind = "substitution_error"
    status_code = 422


class LogoSlotNotFoundError(SubstitutionError):
    kind = "logo_slot_not_found"


class LogoNotImageError(SubstitutionError):
    kind = "logo_not_image"


# --- Internal (500): invariant violations, logged with traceback.


class InternalError(LogoTestError):
    kind = "internal_error"
    status_code = 500


class SerializationInvariantError(InternalError):
    kind = "serialization_invariant"
