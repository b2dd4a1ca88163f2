"""Unit tests for the credential store."""

from __future__ import annotations

import base64
import copy
import pickle

import pytest
from pydantic import SecretStr

from paperless_client.config import PaperlessConfig
from paperless_client.core import (
    CredentialKind,
    CredentialMissingError,
    CredentialStore,
    ErrorKind,
    RequestBuilder,
)


def _authorization(credentials: CredentialStore) -> str:
    request = RequestBuilder("GET", "http://paperless.test", "/api/").build(credentials)
    return request.headers["Authorization"]


# ---------------------------------------------------------------------------
# Authorization headers
# ---------------------------------------------------------------------------


class TestAuthorize:
    """Tests for the Authorization header each store produces."""

    def test_token_header(self) -> None:
        """Test token credentials use the Token scheme by default."""
        credentials = CredentialStore.with_token("abc123")

        assert _authorization(credentials) == "Token abc123"
        assert credentials.kind is CredentialKind.TOKEN

    def test_token_header_custom_scheme(self) -> None:
        """Test the token scheme can be changed (e.g. for OIDC proxies)."""
        credentials = CredentialStore.with_token("abc123", scheme="Bearer")

        assert _authorization(credentials) == "Bearer abc123"

    def test_basic_header(self) -> None:
        """Test basic credentials are base64 encoded user:password."""
        credentials = CredentialStore.with_basic("alice", "pa:ss")

        expected = base64.b64encode(b"alice:pa:ss").decode("ascii")
        assert _authorization(credentials) == f"Basic {expected}"
        assert credentials.kind is CredentialKind.BASIC

    def test_empty_store_raises(self) -> None:
        """Test building with an empty store fails with CredentialMissing."""
        with pytest.raises(CredentialMissingError) as exc_info:
            _authorization(CredentialStore.empty())

        assert exc_info.value.kind is ErrorKind.CREDENTIAL_MISSING

    def test_cleared_store_raises(self) -> None:
        """Test a cleared store can no longer authorize requests."""
        credentials = CredentialStore.with_token("abc123")
        credentials.clear()

        with pytest.raises(CredentialMissingError):
            _authorization(credentials)

    def test_unauthenticated_build(self) -> None:
        """Test building without a store sends no Authorization header."""
        request = RequestBuilder("GET", "http://paperless.test", "/api/").build(None)

        assert "Authorization" not in request.headers


# ---------------------------------------------------------------------------
# Secret hygiene
# ---------------------------------------------------------------------------


class TestSecretHygiene:
    """Tests that the secret never leaks."""

    def test_repr_redacts_secret(self) -> None:
        """Test repr and str never include the secret."""
        credentials = CredentialStore.with_token("super-secret-token")

        assert "super-secret-token" not in repr(credentials)
        assert "super-secret-token" not in str(credentials)
        assert "<redacted>" in repr(credentials)

    def test_repr_after_clear(self) -> None:
        """Test repr reports a cleared store."""
        credentials = CredentialStore.with_token("super-secret-token")
        credentials.clear()

        assert "<cleared>" in repr(credentials)
        assert credentials.is_cleared

    def test_repr_inside_containers(self) -> None:
        """Test the secret stays hidden when formatted inside other objects."""
        credentials = CredentialStore.with_basic("alice", "hunter2")

        assert "hunter2" not in repr([credentials])
        assert "hunter2" not in f"{ {'auth': credentials} }"

    def test_cannot_be_pickled(self) -> None:
        """Test pickling is refused."""
        with pytest.raises(TypeError):
            pickle.dumps(CredentialStore.with_token("abc123"))

    def test_cannot_be_copied(self) -> None:
        """Test copying is refused."""
        credentials = CredentialStore.with_token("abc123")

        with pytest.raises(TypeError):
            copy.copy(credentials)
        with pytest.raises(TypeError):
            copy.deepcopy(credentials)

    def test_context_manager_clears(self) -> None:
        """Test leaving the context zeroes the secret."""
        with CredentialStore.with_token("abc123") as credentials:
            assert not credentials.is_cleared

        assert credentials.is_cleared

    def test_equality_compares_secret(self) -> None:
        """Test equality without exposing the secret."""
        assert CredentialStore.with_token("a") == CredentialStore.with_token("a")
        assert CredentialStore.with_token("a") != CredentialStore.with_token("b")
        assert CredentialStore.with_token("a") != CredentialStore.with_basic("u", "a")

    def test_not_hashable(self) -> None:
        """Test stores cannot be used as dict keys."""
        with pytest.raises(TypeError):
            hash(CredentialStore.with_token("abc123"))


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestFromConfig:
    """Tests for building a store from configuration."""

    def test_token_config(self) -> None:
        """Test a configured token produces a token store."""
        config = PaperlessConfig(token=SecretStr("cfg-token"), auth_scheme="Bearer")

        credentials = CredentialStore.from_config(config)

        assert _authorization(credentials) == "Bearer cfg-token"

    def test_basic_config(self) -> None:
        """Test username/password produce a basic store."""
        config = PaperlessConfig(username="alice", password=SecretStr("pw"))

        credentials = CredentialStore.from_config(config)

        assert credentials.kind is CredentialKind.BASIC

    def test_token_wins_over_basic(self) -> None:
        """Test a token takes precedence over username/password."""
        config = PaperlessConfig(
            token=SecretStr("cfg-token"),
            username="alice",
            password=SecretStr("pw"),
        )

        assert CredentialStore.from_config(config).kind is CredentialKind.TOKEN

    def test_no_credentials(self) -> None:
        """Test nothing configured yields an empty store."""
        credentials = CredentialStore.from_config(PaperlessConfig())

        assert credentials.kind is CredentialKind.NONE
        assert credentials.is_cleared
