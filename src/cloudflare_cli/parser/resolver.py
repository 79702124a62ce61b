"""Lazy ``$ref`` resolution over a raw OpenAPI document.

Cloudflare's document is large and heavily cross-referenced, so instead of
inlining every reference up front this module keeps the document as-is and
resolves pointers on demand through a :class:`RefTable`. Lookups are
memoized per pointer, and every walk that follows references carries a
visited set so that self-referential schemas terminate.

Only **internal** references (``#/...``) are supported. External file or
URL references raise :class:`~cloudflare_cli.exceptions.SchemaError`.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from cloudflare_cli.exceptions import SchemaError

logger = logging.getLogger(__name__)

_COMPOSITION_KEYS = ("allOf", "oneOf", "anyOf")


def _escape(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


class RefTable:
    """Memoized JSON pointer lookups against one document.

    Args:
        document: The raw OpenAPI dictionary. It is never mutated.
    """

    def __init__(self, document: dict[str, Any]):
        self._document = document
        self._cache: dict[str, Any] = {}

    def resolve(self, ref: str) -> Any:
        """Return the node a ``$ref`` string points to.

        Handles RFC 6901 escaping (``~0`` for ``~``, ``~1`` for ``/``).

        Raises:
            SchemaError: If the reference is external or any segment of the
                pointer does not exist.
        """
        if ref in self._cache:
            return self._cache[ref]
        if not ref.startswith("#"):
            raise SchemaError(
                f"External $ref not supported: {ref}. "
                "Only internal references (#/...) are handled."
            )

        pointer = ref[1:]
        if pointer and not pointer.startswith("/"):
            raise SchemaError(f"Cannot resolve $ref '{ref}': not a JSON pointer")

        current: Any = self._document
        segments = pointer.split("/")[1:] if pointer else []
        for raw_segment in segments:
            segment = raw_segment.replace("~1", "/").replace("~0", "~")
            if isinstance(current, dict):
                if segment not in current:
                    raise SchemaError(
                        f"Cannot resolve $ref '{ref}': key '{segment}' not found"
                    )
                current = current[segment]
            elif isinstance(current, list):
                try:
                    current = current[int(segment)]
                except (ValueError, IndexError) as exc:
                    raise SchemaError(
                        f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                    ) from exc
            else:
                raise SchemaError(
                    f"Cannot resolve $ref '{ref}': "
                    f"cannot navigate into {type(current).__name__}"
                )

        self._cache[ref] = current
        return current

    def iter_refs(self) -> Iterator[tuple[str, str]]:
        """Yield ``(location, ref)`` for every ``$ref`` in the document.

        ``location`` is the JSON pointer of the object holding the ``$ref``.
        """
        stack: list[tuple[str, Any]] = [("#", self._document)]
        while stack:
            location, node = stack.pop()
            if isinstance(node, dict):
                ref = node.get("$ref")
                if isinstance(ref, str):
                    yield location, ref
                for key in sorted(node, key=str, reverse=True):
                    stack.append((f"{location}/{_escape(str(key))}", node[key]))
            elif isinstance(node, list):
                for index in range(len(node) - 1, -1, -1):
                    stack.append((f"{location}/{index}", node[index]))

    def validate_all(self) -> int:
        """Resolve every reference in the document once.

        Returns:
            The number of distinct references checked.

        Raises:
            SchemaError: Naming the first reference that does not resolve,
                together with where it appears.
        """
        checked: set[str] = set()
        for location, ref in self.iter_refs():
            if ref in checked:
                continue
            try:
                self.resolve(ref)
            except SchemaError as exc:
                raise SchemaError(f"{exc} (referenced from {location})") from exc
            checked.add(ref)
        logger.debug("Validated %d distinct $ref pointers", len(checked))
        return len(checked)

    def deref(self, node: Any) -> Any:
        """Follow a chain of ``$ref`` objects until a concrete node is reached.

        Raises:
            SchemaError: If the chain loops back on itself.
        """
        seen: set[str] = set()
        while isinstance(node, dict) and isinstance(node.get("$ref"), str):
            ref = node["$ref"]
            if ref in seen:
                raise SchemaError(f"Cyclic $ref chain through '{ref}'")
            seen.add(ref)
            node = self.resolve(ref)
        return node

    def concrete_type(self, schema: Any) -> str:
        """Return the JSON type a schema ultimately describes.

        ``$ref`` and ``allOf``/``oneOf``/``anyOf`` members are followed
        depth-first; the first concrete type found wins. Schemas that carry
        no type information at all are reported as ``"any"``.

        Raises:
            SchemaError: If the schema only ever refers back to itself
                without reaching a concrete type.
        """
        found, cyclic = self._find_type(schema, frozenset())
        if found is not None:
            return found
        if cyclic:
            raise SchemaError(
                "Schema resolves cyclically without reaching a concrete type"
            )
        return "any"

    def _find_type(
        self, schema: Any, visiting: frozenset[str]
    ) -> tuple[Optional[str], bool]:
        if not isinstance(schema, dict):
            return None, False
        ref = schema.get("$ref")
        if isinstance(ref, str):
            if ref in visiting:
                return None, True
            return self._find_type(self.resolve(ref), visiting | {ref})

        declared = schema.get("type")
        if isinstance(declared, list):
            declared = next((t for t in declared if t != "null"), None)
        if isinstance(declared, str):
            return declared, False
        if "properties" in schema or "additionalProperties" in schema:
            return "object", False
        if "items" in schema:
            return "array", False

        cyclic = False
        for key in _COMPOSITION_KEYS:
            for member in schema.get(key) or []:
                found, member_cyclic = self._find_type(member, visiting)
                if found is not None:
                    return found, False
                cyclic = cyclic or member_cyclic
        return None, cyclic

    def object_properties(
        self, schema: Any
    ) -> tuple[dict[str, Any], set[str]]:
        """Collect top-level properties of an object schema.

        Properties contributed by ``allOf`` members are merged in order;
        ``oneOf``/``anyOf`` alternatives are not, since only one of them
        applies to a given request.

        Returns:
            ``(properties, required)`` where *properties* maps each property
            name to its (possibly still ``$ref``) schema.
        """
        properties: dict[str, Any] = {}
        required: set[str] = set()
        self._collect_properties(schema, properties, required, frozenset())
        return properties, required

    def _collect_properties(
        self,
        schema: Any,
        properties: dict[str, Any],
        required: set[str],
        visiting: frozenset[str],
    ) -> None:
        if not isinstance(schema, dict):
            return
        ref = schema.get("$ref")
        if isinstance(ref, str):
            if ref in visiting:
                return
            self._collect_properties(
                self.resolve(ref), properties, required, visiting | {ref}
            )
            return
        for member in schema.get("allOf") or []:
            self._collect_properties(member, properties, required, visiting)
        for name, prop in (schema.get("properties") or {}).items():
            properties.setdefault(str(name), prop)
        required.update(str(name) for name in schema.get("required") or [])
