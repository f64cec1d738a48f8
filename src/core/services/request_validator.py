"""Validation and normalization of preview/diff inputs.

Everything here is pure: no network, no filesystem. Validation errors are
raised before any outbound call is attempted, and each one carries a message
the user can act on.

`File:` logo names are expanded with MediaWiki's hashed upload layout, so the
same name always yields the same Commons URLs:

    name  = title without "File:", spaces -> underscores, first letter upper-cased
    h     = md5(name)
    file  = {upload_base}/{h[0]}/{h[0:2]}/{name}
    thumb = {upload_base}/thumb/{h[0]}/{h[0:2]}/{name}/{width}px-{name}[.png for svg]
"""

from __future__ import annotations

import hashlib
import ipaddress
import logging
import math
import re
from urllib.parse import quote, urlsplit

from core.config import AppSettings
from core.domain.models import ComparisonPair, LogoReference, ValidatedRequest, WikiTarget
from core.domain.skins import SKIN_REGISTRY, SkinId
from core.errors import (
    InvalidDomainError,
    InvalidLogoReferenceError,
    MissingParameterError,
    UnsupportedSkinError,
)

logger = logging.getLogger(__name__)

_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")
_ALLOWED_PORTS = {80, 443}
_RESERVED_SUFFIXES = ("localhost", ".local", ".internal", ".localdomain")
_FILE_PREFIX = "file:"
# MediaWiki rejects these in file names ($wgIllegalFileChars + title-illegal chars).
_ILLEGAL_FILE_CHARS = set(":/\\#<>[]|{}")


def _thumb_widths(base: int) -> tuple[int, int, int]:
    # MediaWiki rounds half up (PHP round), not to even.
    return base, math.floor(base * 1.5 + 0.5), base * 2


def normalize_file_name(title: str) -> str:
    """'File:my logo.svg' -> 'My_logo.svg'."""

    name = title.strip()
    if name.lower().startswith(_FILE_PREFIX):
        name = name[len(_FILE_PREFIX):]
    name = re.sub(r"[\s_]+", "_", name.strip()).strip("_")
    if not name:
        return ""
    return name[0].upper() + name[1:]


def commons_file_urls(name: str, *, upload_base: str, width: int) -> tuple[str, str, str, str]:
    """Return (original, thumb_1x, thumb_1_5x, thumb_2x) for a normalized file name."""

    digest = hashlib.md5(name.encode("utf-8")).hexdigest()  # nosec - path hashing, not security
    base = upload_base.rstrip("/")
    quoted = quote(name, safe="!$'()*,;@~")
    hashed = f"{digest[0]}/{digest[:2]}/{quoted}"
    suffix = ".png" if name.lower().endswith(".svg") else ""

    thumbs = [
        f"{base}/thumb/{hashed}/{w}px-{quoted}{suffix}"
        for w in _thumb_widths(width)
    ]
    return f"{base}/{hashed}", thumbs[0], thumbs[1], thumbs[2]


class RequestValidator:
    """Validates wiki domain, skin and logo reference."""

    def __init__(self, settings: AppSettings | None = None) -> None:
        self._settings = settings or AppSettings()

    def validate(self, *, wiki: str | None, logo: str | None, skin: str | None) -> ValidatedRequest:
        """Validate a /test request. Skin first, then wiki, then logo."""

        checked_skin = self.validate_skin(skin)
        domain = self.validate_domain(wiki)
        reference = self.validate_logo(logo)
        return ValidatedRequest(
            target=WikiTarget(domain=domain, skin=checked_skin),
            logo=reference,
        )

    def validate_pair(self, *, logo1: str | None, logo2: str | None) -> ComparisonPair:
        return ComparisonPair(
            first=self.validate_logo(logo1, param="logo1"),
            second=self.validate_logo(logo2, param="logo2"),
        )

    def validate_skin(self, raw: str | None) -> SkinId:
        value = _required(raw, "useskin").lower()
        try:
            skin = SkinId(value)
        except ValueError:
            logger.debug("Rejected skin %r", raw)
            known = ", ".join(s.value for s in SKIN_REGISTRY)
            raise UnsupportedSkinError(f"Unsupported skin '{value}' (known skins: {known})") from None
        if skin not in SKIN_REGISTRY:
            raise UnsupportedSkinError(f"Skin '{value}' has no registered logo strategy")
        return skin

    def validate_domain(self, raw: str | None) -> str:
        value = _required(raw, "wiki")

        if "://" in value:
            parts = urlsplit(value)
            if parts.scheme.lower() not in ("http", "https"):
                raise InvalidDomainError("Wiki URL must use http or https")
        else:
            parts = urlsplit(f"//{value}")
            if parts.path not in ("", "/") or parts.query or parts.fragment:
                raise InvalidDomainError("Wiki must be a bare host such as 'en.wikipedia.org'")

        if parts.username is not None or parts.password is not None:
            raise InvalidDomainError("Wiki must not contain credentials")
        try:
            port = parts.port
        except ValueError:
            raise InvalidDomainError("Wiki has an invalid port") from None

        host = check_public_host(parts.hostname or "", port)
        self._check_suffix(host)
        return host

    def validate_logo(self, raw: str | None, *, param: str = "logo") -> LogoReference:
        value = _required(raw, param, error=InvalidLogoReferenceError)

        if value.lower().startswith(_FILE_PREFIX):
            return self._file_reference(value)
        if "://" in value:
            return self._url_reference(value)

        logger.debug("Rejected logo reference %r", raw)
        raise InvalidLogoReferenceError("Logo must be a 'File:Name.svg' page or an http(s) URL")

    def _file_reference(self, value: str) -> LogoReference:
        name = normalize_file_name(value)
        if not name:
            raise InvalidLogoReferenceError("Logo file name is empty")
        if any(ch in _ILLEGAL_FILE_CHARS for ch in name):
            raise InvalidLogoReferenceError("Logo file name contains illegal characters")

        extension = name.rsplit(".", 1)[-1].lower() if "." in name else ""
        allowed = [e.lower().lstrip(".") for e in self._settings.allowed_logo_extensions]
        if extension not in allowed:
            raise InvalidLogoReferenceError(
                f"Logo must be one of: {', '.join('.' + e for e in allowed)}"
            )

        _, thumb, thumb_1_5x, thumb_2x = commons_file_urls(
            name,
            upload_base=self._settings.commons_upload_base,
            width=self._settings.logo_width,
        )
        return LogoReference(
            original=value,
            url=thumb,
            url_1_5x=thumb_1_5x,
            url_2x=thumb_2x,
            is_file_page=True,
        )

    def _url_reference(self, value: str) -> LogoReference:
        parts = urlsplit(value)
        schemes = {s.lower() for s in self._settings.allowed_logo_schemes}
        if parts.scheme.lower() not in schemes:
            raise InvalidLogoReferenceError(
                f"Logo URL scheme must be one of: {', '.join(sorted(schemes))}"
            )
        if parts.username is not None or parts.password is not None:
            raise InvalidLogoReferenceError("Logo URL must not contain credentials")
        if not parts.hostname:
            raise InvalidLogoReferenceError("Logo URL has no host")
        try:
            check_public_host(parts.hostname, parts.port)
        except ValueError:
            raise InvalidLogoReferenceError("Logo URL has an invalid port") from None
        except InvalidDomainError as exc:
            raise InvalidLogoReferenceError(
                f"Logo URL host is not allowed: {exc.public_message}"
            ) from None
        return LogoReference(original=value, url=value)

    def _check_suffix(self, host: str) -> None:
        suffixes = [s.lower().lstrip(".") for s in self._settings.allowed_wiki_suffixes if s]
        if not suffixes:
            return
        if not any(host == s or host.endswith("." + s) for s in suffixes):
            raise InvalidDomainError(f"Wiki '{host}' is not in the list of allowed wikis")


def _required(raw: str | None, param: str, *, error: type = MissingParameterError) -> str:
    value = (raw or "").strip()
    if not value:
        raise error(f"Missing required parameter '{param}'")
    return value


def check_public_host(host: str, port: int | None = None) -> str:
    """Normalize `host` and reject anything that is not a public DNS name.

    IP literals, localhost and internal suffixes are refused, as are explicit
    ports other than 80/443. Used for the wiki, for logo URLs and for every
    redirect hop followed by the HTTP client.
    """

    if port is not None and port not in _ALLOWED_PORTS:
        raise InvalidDomainError(f"Port {port} is not allowed")
    return _normalize_host(host)


def _normalize_host(host: str) -> str:
    host = host.strip().rstrip(".").lower()
    if not host:
        raise InvalidDomainError("Host is empty")

    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        pass
    else:
        raise InvalidDomainError("Expected a host name, not an IP address")

    try:
        host = host.encode("idna").decode("ascii")
    except UnicodeError:
        raise InvalidDomainError(f"Host '{host}' is not a valid domain") from None

    if len(host) > 253:
        raise InvalidDomainError("Host is too long")
    labels = host.split(".")
    if len(labels) < 2 or not all(_LABEL_RE.match(label) for label in labels):
        raise InvalidDomainError(f"Host '{host}' is not a valid domain")
    if labels[-1].isdigit():
        raise InvalidDomainError(f"Host '{host}' is not a valid domain")
    if host.endswith(_RESERVED_SUFFIXES):
        raise InvalidDomainError(f"Host '{host}' is reserved for internal use")
    return host
