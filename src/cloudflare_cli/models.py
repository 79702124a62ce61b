"""Canonical Pydantic models shared across all cloudflare-cli modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Settings** -- effective runtime configuration:
    :class:`Settings`.

**Schema model** -- produced by the OpenAPI parser and consumed by the
compiler:
    :class:`HTTPMethod`, :class:`ParameterLocation`,
    :class:`SourceOperation` and :class:`SchemaModel`.

**Command tree** -- the compiled, persisted artifact shared between compile
time and run time:
    :class:`PrimitiveType`, :class:`ParamDef`, :class:`BodyField`,
    :class:`OperationNode`, :class:`ResourceNode` and :class:`CommandTree`.

**Runtime values** -- ephemeral, owned by a single invocation:
    :class:`BoundParameter`, :class:`BoundParameters`, :class:`RuntimeFlags`,
    :class:`RequestOverrides`, :class:`BoundRequest` and
    :class:`RawResponse`.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

if TYPE_CHECKING:
    from cloudflare_cli.parser.resolver import RefTable


DEFAULT_API_URL = "https://api.cloudflare.com/client/v4"
"""Base URL used when neither the tree, the environment nor the config file names one."""


# --- Settings ---


class Settings(BaseModel):
    """Effective configuration for one ``cloudflare`` invocation.

    Resolved by :func:`~cloudflare_cli.config.load_settings` from CLI flags,
    environment variables, the user config file and defaults, in that order
    of precedence. ``api_url`` stays ``None`` unless explicitly configured so
    that the command tree's own ``endpoint`` can act as the default.
    """

    api_token: Optional[str] = Field(default=None, repr=False)
    api_url: Optional[str] = None
    account_id: Optional[str] = None
    zone_id: Optional[str] = None
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    tree_path: Optional[str] = Field(
        default=None, description="Alternate command tree artifact"
    )


# --- Schema model ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI 3.x path-item objects."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class SourceOperation(BaseModel):
    """A single operation as declared in the OpenAPI document.

    Parameter and request body objects are dereferenced, but the schemas
    inside them may still contain ``$ref`` pointers; the compiler resolves
    those through the owning :class:`SchemaModel`'s reference table.
    """

    path: str
    method: HTTPMethod
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    parameters: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Path-item and operation parameters, merged by (name, in)",
    )
    request_body: Optional[dict[str, Any]] = None
    deprecated: bool = False


class SchemaModel(BaseModel):
    """In-memory representation of a parsed OpenAPI document.

    ``paths`` maps a path template to a mapping of HTTP method to
    :class:`SourceOperation`. The ``$ref`` table over :attr:`document` is
    built on first access and memoized for the model's lifetime.

    See Also:
        :func:`~cloudflare_cli.parser.extractor.extract_schema`: Builds this model.
        :func:`~cloudflare_cli.compiler.compile_tree`: Consumes it.
    """

    title: str = "API"
    version: str = "0.0.0"
    openapi_version: str = "3.0.0"
    servers: list[str] = Field(default_factory=list)
    tag_descriptions: dict[str, str] = Field(default_factory=dict)
    paths: dict[str, dict[HTTPMethod, SourceOperation]] = Field(default_factory=dict)
    document: dict[str, Any] = Field(default_factory=dict, repr=False)

    _refs: Any = PrivateAttr(default=None)

    @property
    def refs(self) -> RefTable:
        """The memoized ``$ref`` resolution table for :attr:`document`."""
        if self._refs is None:
            from cloudflare_cli.parser.resolver import RefTable

            self._refs = RefTable(self.document)
        return self._refs

    def operations(self) -> list[SourceOperation]:
        """Return every operation, ordered by ``(path, method)``."""
        ops: list[SourceOperation] = []
        for path in sorted(self.paths):
            by_method = self.paths[path]
            for method in sorted(by_method, key=lambda m: m.value):
                ops.append(by_method[method])
        return ops


# --- Command tree ---


class PrimitiveType(str, enum.Enum):
    """Value types a CLI parameter can be coerced to."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"


class ParamDef(BaseModel):
    """A compiled operation parameter.

    ``flag`` is the kebab-cased name users type after ``--``; it is unique
    within the owning operation. ``items`` carries the element type for
    ``array`` parameters.
    """

    name: str
    flag: str
    location: ParameterLocation
    required: bool = False
    type: PrimitiveType = PrimitiveType.STRING
    items: Optional[PrimitiveType] = None
    enum: Optional[list[str]] = None
    description: Optional[str] = None

    @property
    def is_list(self) -> bool:
        return self.type == PrimitiveType.ARRAY


class BodyField(BaseModel):
    """A top-level property of an operation's JSON request body."""

    name: str
    type: str = "any"
    required: bool = False
    description: Optional[str] = None


class OperationNode(BaseModel):
    """A compiled operation -- one invocable ``cloudflare <resource> <op>`` command."""

    slug: str
    display_name: str
    method: HTTPMethod
    path: str
    summary: Optional[str] = None
    description: Optional[str] = None
    deprecated: bool = False
    parameters: list[ParamDef] = Field(default_factory=list)
    has_body: bool = False
    body_required: bool = False
    body_fields: list[BodyField] = Field(default_factory=list)

    def parameter(self, name: str) -> Optional[ParamDef]:
        """Return the parameter called *name* (original OpenAPI name), if any."""
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def path_parameters(self) -> list[ParamDef]:
        return [p for p in self.parameters if p.location == ParameterLocation.PATH]


class ResourceNode(BaseModel):
    """A group of operations (and optionally nested resources) under one slug."""

    slug: str
    display_name: str
    description: Optional[str] = None
    operations: list[OperationNode] = Field(default_factory=list)
    resources: list[ResourceNode] = Field(default_factory=list)

    def operation(self, slug: str) -> Optional[OperationNode]:
        for op in self.operations:
            if op.slug == slug:
                return op
        return None

    def resource(self, slug: str) -> Optional[ResourceNode]:
        for child in self.resources:
            if child.slug == slug:
                return child
        return None


class CommandTree(BaseModel):
    """The compiled command tree persisted as ``command_tree.json``.

    Self-contained and acyclic: every ``$ref`` of the source document has
    been resolved at compile time, and children are sorted by slug at every
    level so that recompiling an unchanged document is byte-identical.
    """

    version: int = 4
    endpoint: str = DEFAULT_API_URL
    title: str = "API"
    resources: list[ResourceNode] = Field(default_factory=list)

    def resource(self, slug: str) -> Optional[ResourceNode]:
        for res in self.resources:
            if res.slug == slug:
                return res
        return None


# --- Runtime values ---


class BoundParameter(BaseModel):
    """A CLI-supplied value matched to a declared parameter, location preserved."""

    name: str
    location: ParameterLocation
    value: Any


class BoundParameters(BaseModel):
    """Output of :func:`~cloudflare_cli.runtime.binder.bind`."""

    values: list[BoundParameter] = Field(default_factory=list)
    body: Optional[str] = Field(default=None, description="Raw --body JSON text")

    def get(self, name: str) -> Any:
        for bound in self.values:
            if bound.name == name:
                return bound.value
        return None

    def by_location(self, location: ParameterLocation) -> list[BoundParameter]:
        return [b for b in self.values if b.location == location]


class RuntimeFlags(BaseModel):
    """Flags that shape a call but are not operation parameters."""

    headers: list[tuple[str, str]] = Field(default_factory=list)
    raw: bool = False
    pretty: bool = False
    dry_run: bool = False


class RequestOverrides(BaseModel):
    """Per-invocation inputs to the request builder that do not come from the tree."""

    base_url: str = DEFAULT_API_URL
    headers: list[tuple[str, str]] = Field(default_factory=list)
    api_token: Optional[str] = Field(default=None, repr=False)
    account_id: Optional[str] = None
    zone_id: Optional[str] = None


class BoundRequest(BaseModel):
    """A fully assembled HTTP request, discarded after execution."""

    model_config = ConfigDict(frozen=True)

    method: HTTPMethod
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: Optional[Any] = None
    has_body: bool = False


class RawResponse(BaseModel):
    """The undecoded result of an HTTP call."""

    status_code: int
    reason: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    content: bytes = b""

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300
