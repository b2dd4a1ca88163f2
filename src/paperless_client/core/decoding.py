"""Decoding of successful response bodies into typed values."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import pydantic_core
from pydantic import TypeAdapter, ValidationError

from paperless_client.core.errors import PaperlessDecodeError
from paperless_client.core.models import Page


__all__ = [
    "decode_object",
    "decode_page",
    "type_name",
]

_JSON_MEDIA_TYPES = ("application/json", "application/problem+json")


class _RawPage(Page[Any]):
    """Page whose items are still undecoded JSON values."""


@lru_cache(maxsize=256)
def _adapter(target: Any) -> TypeAdapter[Any]:  # noqa: ANN401
    return TypeAdapter(target)


def type_name(target: Any) -> str:  # noqa: ANN401
    """Readable name of a decode target, for error messages."""
    return getattr(target, "__name__", None) or repr(target)


def _check_content_type(content_type: str | None, expected: str) -> None:
    if content_type is None:
        return
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type not in _JSON_MEDIA_TYPES and not media_type.endswith("+json"):
        raise PaperlessDecodeError(expected, f"unexpected content type {media_type!r}")


def _first_error(exc: ValidationError) -> str:
    error = exc.errors(include_url=False)[0]
    if error["type"] == "json_invalid":
        return f"invalid JSON: {error['msg']}"
    location = ".".join(str(part) for part in error["loc"]) or "<root>"
    return f"{location}: {error['msg']}"


def decode_object[T](
    body: bytes,
    target: type[T] | Any,  # noqa: ANN401
    *,
    content_type: str | None = None,
) -> T:
    """Decode a JSON body into ``target``.

    Validation is strict: enum and numeric values outside the declared
    domain fail, and nothing is coerced (JSON ``true`` is not an ``int``,
    ``"1"`` is not an enum member) or silently defaulted.

    Args:
        body: The complete response body.
        target: Any type pydantic can validate (model, ``str``, ``list[X]``).
        content_type: The response ``Content-Type``, if known.

    Returns:
        The decoded value.

    Raises:
        PaperlessDecodeError: If the body is not JSON or does not match.
    """
    expected = type_name(target)
    _check_content_type(content_type, expected)
    try:
        return _adapter(target).validate_json(body, strict=True)  # type: ignore[no-any-return]
    except ValidationError as exc:
        raise PaperlessDecodeError(expected, _first_error(exc)) from exc


def decode_page[T](
    body: bytes,
    item_type: type[T],
    *,
    content_type: str | None = None,
) -> Page[T]:
    """Decode a paginated listing.

    The envelope is validated first, then every item in order. A single
    malformed item fails the whole page: no partial pages are returned.

    Args:
        body: The complete response body.
        item_type: Type of each entry in ``results``.
        content_type: The response ``Content-Type``, if known.

    Returns:
        The decoded page.

    Raises:
        PaperlessDecodeError: If the envelope or any item does not match.
    """
    expected = f"Page[{type_name(item_type)}]"
    _check_content_type(content_type, expected)
    try:
        raw = _RawPage.model_validate_json(body, strict=True)
    except ValidationError as exc:
        raise PaperlessDecodeError(expected, _first_error(exc)) from exc

    adapter = _adapter(item_type)
    items: list[T] = []
    for index, item in enumerate(raw.results):
        try:
            # Items go back through JSON so strict mode sees JSON types
            items.append(adapter.validate_json(pydantic_core.to_json(item), strict=True))
        except ValidationError as exc:
            reason = f"results[{index}]: {_first_error(exc)}"
            raise PaperlessDecodeError(expected, reason) from exc

    return Page[item_type](  # type: ignore[valid-type]
        count=raw.count,
        next=raw.next,
        previous=raw.previous,
        results=items,
        all=raw.all,
    )
