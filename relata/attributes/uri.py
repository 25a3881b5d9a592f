"""Parsing and formatting of attribute reference URIs.

Attribute definitions refer to raw fields and to other attributes through two
URI schemes:

    primitive://csv/<column>?type=<T>[&description=<text>][&values=<a,b,c>]
    primitive://property/<path>?type=<T>[&description=<text>][&values=<a,b,c>]
    local://<host>/data/<relation>/<attribute>[/<selector>...]

Query strings are parsed strictly: values are percent-decoded, duplicate and
unknown keys are rejected, and a missing `type` is an error. Every malformed
reference raises MalformedReferenceError at load time so that bad manifests
never reach resolution.
"""

import re
from dataclasses import dataclass
from typing import Literal
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit

from ..core.errors import MalformedReferenceError


PRIMITIVE_SCHEME = "primitive"
LOCAL_SCHEME = "local"

CSV_SOURCE = "csv"
PROPERTY_SOURCE = "property"

VALUE_TYPES = ("number", "integer", "string")

_QUERY_KEYS = frozenset({"type", "description", "values"})
_INDEX_RE = re.compile(r"^[0-9]+$")
_PATH_SEPARATORS = re.compile(r"[./]")

ValueType = Literal["number", "integer", "string"]
Selector = int | str


# =============================================================================
# Descriptors
# =============================================================================


@dataclass(frozen=True)
class PrimitiveDescriptor:
    """A raw field address plus its declared value type.

    Exactly one of `column` (CSV, 1-based) or `path` (JSON property path) is
    meaningful, depending on `source`.
    """

    source: Literal["csv", "property"]
    value_type: ValueType
    column: int | None = None
    path: tuple[str, ...] = ()
    description: str | None = None
    values: tuple[str, ...] | None = None

    def __post_init__(self):
        # ',' separates the values= list
        if self.values is not None and any("," in v for v in self.values):
            raise ValueError(f"nominal values cannot contain ',': {self.values!r}")

    @property
    def is_nominal(self) -> bool:
        return self.values is not None

    @property
    def address(self) -> str:
        """Human-readable field address, e.g. 'column 3' or 'sepal/length'."""
        if self.source == CSV_SOURCE:
            return f"column {self.column}"
        return "/".join(self.path)


@dataclass(frozen=True)
class LocalReference:
    """A same-service reference to a registered attribute.

    Selectors are applied to the referenced attribute's value in order: an
    int is a 1-based sequence index, a str is a mapping key.
    """

    relation: str
    attribute: str
    selectors: tuple[Selector, ...] = ()
    host: str = "localhost"

    @property
    def index(self) -> int | None:
        """The 1-based index when this is a single indexed reference."""
        if len(self.selectors) == 1 and isinstance(self.selectors[0], int):
            return self.selectors[0]
        return None


Reference = PrimitiveDescriptor | LocalReference


# =============================================================================
# Parsing
# =============================================================================


def parse_reference(uri: str) -> Reference:
    """Parse an attribute reference URI.

    Args:
        uri: A primitive:// or local:// URI string

    Returns:
        PrimitiveDescriptor for primitive:// URIs, LocalReference for local://

    Raises:
        MalformedReferenceError: If the scheme is unrecognized or the URI
            does not follow the scheme's grammar

    Example:
        >>> parse_reference("primitive://csv/5?type=string&values=a,b")
        PrimitiveDescriptor(source='csv', value_type='string', column=5, ...)
    """
    if not isinstance(uri, str) or not uri:
        raise MalformedReferenceError(str(uri), "reference must be a non-empty string")

    try:
        parts = urlsplit(uri)
    except ValueError as e:
        raise MalformedReferenceError(uri, str(e)) from e

    if parts.fragment:
        raise MalformedReferenceError(uri, "fragments are not allowed")

    if parts.scheme == PRIMITIVE_SCHEME:
        return _parse_primitive(uri, parts.netloc, parts.path, parts.query)
    if parts.scheme == LOCAL_SCHEME:
        return _parse_local(uri, parts.netloc, parts.path, parts.query)

    raise MalformedReferenceError(
        uri,
        f"unrecognized scheme {parts.scheme!r} "
        f"(expected '{PRIMITIVE_SCHEME}' or '{LOCAL_SCHEME}')",
    )


def _parse_query(uri: str, query: str) -> dict[str, str]:
    if not query:
        return {}
    try:
        pairs = parse_qsl(query, keep_blank_values=True, strict_parsing=True)
    except ValueError as e:
        raise MalformedReferenceError(uri, f"bad query string: {e}") from e

    args: dict[str, str] = {}
    for key, value in pairs:
        if key not in _QUERY_KEYS:
            raise MalformedReferenceError(uri, f"unknown query parameter {key!r}")
        if key in args:
            raise MalformedReferenceError(uri, f"duplicate query parameter {key!r}")
        args[key] = value
    return args


def _parse_primitive(uri: str, source: str, path: str, query: str) -> PrimitiveDescriptor:
    args = _parse_query(uri, query)

    value_type = args.get("type")
    if value_type is None:
        raise MalformedReferenceError(uri, "primitive references require a 'type'")
    if value_type not in VALUE_TYPES:
        raise MalformedReferenceError(
            uri, f"type {value_type!r} is not one of {', '.join(VALUE_TYPES)}"
        )

    values = None
    if "values" in args:
        if value_type != "string":
            raise MalformedReferenceError(
                uri, "'values' is only allowed for string attributes"
            )
        values = tuple(args["values"].split(","))
        if not args["values"] or any(not v for v in values):
            raise MalformedReferenceError(uri, "'values' must be a non-empty list")

    description = args.get("description")
    raw_path = path[1:] if path.startswith("/") else path

    if source == CSV_SOURCE:
        if not _INDEX_RE.match(raw_path) or int(raw_path) < 1:
            raise MalformedReferenceError(
                uri, f"CSV column must be a 1-based integer, got {raw_path!r}"
            )
        return PrimitiveDescriptor(
            source=CSV_SOURCE,
            value_type=value_type,
            column=int(raw_path),
            description=description,
            values=values,
        )

    if source == PROPERTY_SOURCE:
        segments = tuple(unquote(s) for s in _PATH_SEPARATORS.split(raw_path))
        if not raw_path or any(not s for s in segments):
            raise MalformedReferenceError(uri, f"invalid property path {raw_path!r}")
        return PrimitiveDescriptor(
            source=PROPERTY_SOURCE,
            value_type=value_type,
            path=segments,
            description=description,
            values=values,
        )

    raise MalformedReferenceError(
        uri,
        f"unknown primitive source {source!r} "
        f"(expected '{CSV_SOURCE}' or '{PROPERTY_SOURCE}')",
    )


def _parse_local(uri: str, host: str, path: str, query: str) -> LocalReference:
    if query:
        raise MalformedReferenceError(uri, "local references take no query string")

    segments = path.split("/")
    # ['', 'data', relation, attribute, *selectors]
    if len(segments) < 4 or segments[0] != "" or segments[1] != "data":
        raise MalformedReferenceError(
            uri, "expected path of the form /data/<relation>/<attribute>"
        )

    relation, attribute = unquote(segments[2]), unquote(segments[3])
    if not relation or not attribute:
        raise MalformedReferenceError(uri, "relation and attribute must be non-empty")

    selectors: list[Selector] = []
    for raw in segments[4:]:
        if not raw:
            raise MalformedReferenceError(uri, "empty selector segment")
        if _INDEX_RE.match(raw):
            index = int(raw)
            if index < 1:
                raise MalformedReferenceError(uri, "indices are 1-based")
            selectors.append(index)
        else:
            selectors.append(unquote(raw))

    return LocalReference(
        relation=relation,
        attribute=attribute,
        selectors=tuple(selectors),
        host=host,
    )


# =============================================================================
# Formatting
# =============================================================================


def _quote_segment(segment: str) -> str:
    return quote(segment, safe="").replace(".", "%2E")


def format_reference(reference: Reference) -> str:
    """Format a descriptor back into its URI.

    parse_reference(format_reference(ref)) == ref for every valid descriptor.
    """
    if isinstance(reference, LocalReference):
        parts = [
            f"{LOCAL_SCHEME}://{reference.host}/data",
            _quote_segment(reference.relation),
            _quote_segment(reference.attribute),
        ]
        for selector in reference.selectors:
            parts.append(str(selector) if isinstance(selector, int) else _quote_segment(selector))
        return "/".join(parts)

    if reference.source == CSV_SOURCE:
        location = str(reference.column)
    else:
        location = "/".join(_quote_segment(s) for s in reference.path)

    query: list[tuple[str, str]] = [("type", reference.value_type)]
    if reference.description is not None:
        query.append(("description", reference.description))
    if reference.values is not None:
        query.append(("values", ",".join(reference.values)))

    encoded = urlencode(query, quote_via=quote, safe=",")
    return f"{PRIMITIVE_SCHEME}://{reference.source}/{location}?{encoded}"


def local_uri(relation: str, attribute: str, host: str = "localhost") -> str:
    """Build the local:// URI naming a top-level attribute."""
    return format_reference(LocalReference(relation=relation, attribute=attribute, host=host))
