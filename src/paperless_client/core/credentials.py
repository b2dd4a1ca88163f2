"""In-memory credential storage for the Paperless-ngx API client.

Secrets are kept in a mutable ``bytearray`` so they can be overwritten with
zeros when the owning client is closed. The plaintext only exists as a
``str`` for the instant an ``Authorization`` header value is built.
"""

from __future__ import annotations

import base64
import hmac
from enum import StrEnum
from typing import TYPE_CHECKING, NoReturn, Self

from paperless_client.core.errors import CredentialMissingError


if TYPE_CHECKING:
    from paperless_client.config import PaperlessConfig
    from paperless_client.core.request import RequestBuilder


__all__ = [
    "CredentialKind",
    "CredentialStore",
]


class CredentialKind(StrEnum):
    """Which authentication scheme a store holds.

    Attributes:
        TOKEN: API token (``Authorization: Token <token>`` by default).
        BASIC: Username and password (HTTP Basic).
        NONE: No credentials; authorizing a request fails.
    """

    TOKEN = "token"
    BASIC = "basic"
    NONE = "none"


def _scrub(buffer: bytearray) -> None:
    for index in range(len(buffer)):
        buffer[index] = 0
    buffer.clear()


class CredentialStore:
    """Holds the secret used to authenticate every request.

    The store is immutable once constructed and safe to share between
    concurrent calls. Its ``repr`` never includes the secret, it cannot be
    pickled, and :meth:`clear` zeroes the secret in place.

    Example:
        ```python
        with CredentialStore.with_token("abc123") as credentials:
            request = builder.build(credentials)
        ```
    """

    __slots__ = ("_kind", "_scheme", "_secret", "_username")

    def __init__(
        self,
        kind: CredentialKind,
        *,
        secret: bytearray | None = None,
        username: str | None = None,
        scheme: str = "Token",
    ) -> None:
        """Initialize the store. Prefer the ``with_*`` constructors.

        Args:
            kind: The authentication scheme.
            secret: The secret bytes; the store takes ownership.
            username: Username for basic authentication.
            scheme: Authorization scheme for token credentials.
        """
        self._kind = kind
        self._secret = secret if secret is not None else bytearray()
        self._username = username
        self._scheme = scheme

    @classmethod
    def with_token(cls, secret: str, *, scheme: str = "Token") -> Self:
        """Create a store for an API token.

        Args:
            secret: The API token.
            scheme: Authorization scheme; paperless-ngx API tokens use
                ``Token``, OIDC proxies usually expect ``Bearer``.

        Returns:
            A token credential store.
        """
        return cls(
            CredentialKind.TOKEN,
            secret=bytearray(secret.encode("utf-8")),
            scheme=scheme,
        )

    @classmethod
    def with_basic(cls, username: str, secret: str) -> Self:
        """Create a store for HTTP basic authentication.

        Args:
            username: The account name.
            secret: The account password.

        Returns:
            A basic-auth credential store.
        """
        return cls(
            CredentialKind.BASIC,
            secret=bytearray(secret.encode("utf-8")),
            username=username,
        )

    @classmethod
    def empty(cls) -> Self:
        """Create a store with no credentials."""
        return cls(CredentialKind.NONE)

    @classmethod
    def from_config(cls, config: PaperlessConfig) -> Self:
        """Create a store from the ``paperless`` configuration section.

        A token wins over username/password when both are configured.

        Args:
            config: The Paperless-ngx connection settings.

        Returns:
            The matching credential store, or an empty store.
        """
        if config.token is not None:
            return cls.with_token(
                config.token.get_secret_value(),
                scheme=config.auth_scheme,
            )
        if config.username and config.password is not None:
            return cls.with_basic(config.username, config.password.get_secret_value())
        return cls.empty()

    @property
    def kind(self) -> CredentialKind:
        """The authentication scheme held by this store."""
        return self._kind

    @property
    def is_cleared(self) -> bool:
        """Whether the store holds no usable secret."""
        return self._kind is CredentialKind.NONE or not self._secret

    def authorize(self, builder: RequestBuilder) -> None:
        """Add the ``Authorization`` header to an in-progress request.

        Args:
            builder: The request being built.

        Raises:
            CredentialMissingError: If the store is empty or was cleared.
        """
        if self.is_cleared:
            raise CredentialMissingError
        builder.with_header("Authorization", self._header_value())

    def _header_value(self) -> str:
        if self._kind is CredentialKind.BASIC:
            username = (self._username or "").encode("utf-8")
            encoded = base64.b64encode(username + b":" + self._secret)
            return f"Basic {encoded.decode('ascii')}"
        return f"{self._scheme} {self._secret.decode('utf-8')}"

    def clear(self) -> None:
        """Overwrite the secret with zeros. The store becomes unusable."""
        _scrub(self._secret)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.clear()

    def __del__(self) -> None:
        # __init__ may not have run if construction failed
        secret = getattr(self, "_secret", None)
        if secret is not None:
            _scrub(secret)

    def __repr__(self) -> str:
        state = "<cleared>" if self.is_cleared else "<redacted>"
        return f"CredentialStore(kind={self._kind.value!r}, secret={state})"

    __str__ = __repr__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CredentialStore):
            return NotImplemented
        return (
            self._kind is other._kind
            and self._scheme == other._scheme
            and self._username == other._username
            and hmac.compare_digest(bytes(self._secret), bytes(other._secret))
        )

    __hash__ = None  # type: ignore[assignment]

    def __reduce__(self) -> NoReturn:
        msg = "CredentialStore cannot be pickled"
        raise TypeError(msg)

    def __copy__(self) -> NoReturn:
        msg = "CredentialStore cannot be copied"
        raise TypeError(msg)

    def __deepcopy__(self, memo: object) -> NoReturn:
        msg = "CredentialStore cannot be copied"
        raise TypeError(msg)
