"""Translation of Mongo-style metadata filters into Qdrant filter payloads.

``$and``/``$or``/``$not`` become ``must``/``should``/``must_not`` and field
operators become ``match``/``range`` conditions. Qdrant specific checks are
reachable through custom operators (``$count``, ``$geo``, ``$hasId``,
``$nested``, ``$hasVector``, ``$datetime``, ``$null``, ``$empty``).

The result is a plain ``dict`` accepted by ``qdrant_client.models.Filter``.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Mapping

from domain.errors import UnsupportedFilterError

LOGICAL_OPERATORS = frozenset({"$and", "$or", "$not"})
BASIC_OPERATORS = frozenset({"$eq", "$ne"})
NUMERIC_OPERATORS = frozenset({"$gt", "$gte", "$lt", "$lte"})
ARRAY_OPERATORS = frozenset({"$in", "$nin"})
ELEMENT_OPERATORS = frozenset({"$exists"})
REGEX_OPERATORS = frozenset({"$regex"})
CUSTOM_OPERATORS = frozenset(
    {"$count", "$geo", "$nested", "$datetime", "$null", "$empty", "$hasId", "$hasVector"}
)
SUPPORTED_OPERATORS = (
    LOGICAL_OPERATORS
    | BASIC_OPERATORS
    | NUMERIC_OPERATORS
    | ARRAY_OPERATORS
    | ELEMENT_OPERATORS
    | REGEX_OPERATORS
    | CUSTOM_OPERATORS
)

_LOGICAL_TO_QDRANT = {"$and": "must", "$or": "should", "$not": "must_not"}
_QDRANT_CLAUSES = frozenset({"must", "should", "must_not"})
_REGEX_SPECIAL_RE = re.compile(r"[-/\\^$*+?.()|\[\]{}]")


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, Mapping) and not value)


def _normalize_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _normalize_values(values: Any) -> list[Any]:
    return [_normalize_value(value) for value in values]


def escape_regex(pattern: str) -> str:
    return _REGEX_SPECIAL_RE.sub(lambda match: "\\" + match.group(0), pattern)


class QdrantFilterTranslator:
    """Validate and translate filter expressions for Qdrant."""

    def translate(self, filter: Mapping[str, Any] | None) -> dict[str, Any] | None:
        if _is_empty(filter):
            return filter  # type: ignore[return-value]
        if not isinstance(filter, Mapping):
            raise UnsupportedFilterError(f"Filter must be an object, got {type(filter).__name__}")
        self.validate(filter)
        translated = self._translate_node(filter, nested=False)
        if translated and not (_QDRANT_CLAUSES & translated.keys()):
            translated = {"must": [translated]}
        return translated

    # validation -----------------------------------------------------------

    def validate(self, node: Any) -> None:
        if isinstance(node, list):
            for item in node:
                if isinstance(item, Mapping):
                    self.validate(item)
            return
        if not isinstance(node, Mapping) or _QDRANT_CLAUSES & node.keys():
            return

        operator_keys = [key for key in node if key.startswith("$")]
        for key in operator_keys:
            if key not in SUPPORTED_OPERATORS:
                raise UnsupportedFilterError(f"Unsupported operator: {key}")
        logical = [key for key in operator_keys if key in LOGICAL_OPERATORS]
        if logical and len(node) > 1:
            raise UnsupportedFilterError(
                f"Logical operator {logical[0]} cannot be combined with other keys at the same level"
            )

        for key, value in node.items():
            if key in ("$and", "$or"):
                if not isinstance(value, list):
                    raise UnsupportedFilterError(f"{key} requires a list of conditions")
                self.validate(value)
            elif key == "$not":
                if not isinstance(value, (Mapping, list)):
                    raise UnsupportedFilterError("$not requires an object or a list of conditions")
                self.validate(value)
            elif key in ARRAY_OPERATORS:
                if not isinstance(value, list):
                    raise UnsupportedFilterError(f"{key} requires an array value")
            elif key == "$regex":
                if not isinstance(value, str):
                    raise UnsupportedFilterError("$regex requires a string pattern")
            elif key == "$count":
                if not isinstance(value, Mapping):
                    raise UnsupportedFilterError("$count requires an object of comparisons")
            elif key == "$geo":
                if not isinstance(value, Mapping) or "type" not in value:
                    raise UnsupportedFilterError("$geo requires an object with a 'type'")
            elif key == "$datetime":
                if not isinstance(value, Mapping) or not isinstance(value.get("range"), Mapping):
                    raise UnsupportedFilterError("$datetime requires an object with a 'range'")
            elif key == "$nested":
                if not isinstance(value, Mapping):
                    raise UnsupportedFilterError("$nested requires a filter object")
                self.validate(value)
            elif not key.startswith("$"):
                self.validate(value)

    # translation ----------------------------------------------------------

    def _translate_node(self, node: Any, *, nested: bool, field_key: str | None = None) -> Any:
        if isinstance(node, Mapping) and _QDRANT_CLAUSES & node.keys():
            return dict(node)

        if node is None:
            return {"is_null": {"key": self._require_key(field_key, "null match")}}
        if isinstance(node, re.Pattern):
            raise UnsupportedFilterError("Direct regex patterns are not supported; use $regex")
        if isinstance(node, list):
            if not node:
                return {"is_empty": {"key": self._require_key(field_key, "empty match")}}
            return self._field(field_key, match={"any": _normalize_values(node)})
        if not isinstance(node, Mapping):
            return self._field(field_key, match={"value": _normalize_value(node)})

        logical = self._translate_logical(node, nested=nested, field_key=field_key)
        if logical is not None:
            return logical

        conditions: list[Any] = []
        range_: dict[str, Any] = {}
        matches: list[dict[str, Any]] = []

        for key, value in node.items():
            if key in CUSTOM_OPERATORS:
                conditions.append(self._translate_custom(key, value, field_key))
            elif key in NUMERIC_OPERATORS:
                range_[key[1:]] = _normalize_value(value)
            elif key == "$exists":
                conditions.append(self._exists(value, field_key))
            elif key.startswith("$"):
                matches.append(self._translate_match(key, value))
            else:
                nested_key = f"{field_key}.{key}" if field_key else key
                condition = self._translate_node(value, nested=True, field_key=nested_key)
                if isinstance(condition, Mapping) and set(condition) == {"must"}:
                    conditions.extend(condition["must"])
                elif not _is_empty(condition):
                    conditions.append(condition)

        if range_:
            conditions.append(self._field(field_key, range=range_))
        for match in matches:
            conditions.append(self._field(field_key, match=match))

        if not conditions:
            return {}
        if len(conditions) == 1 and nested:
            return conditions[0]
        return {"must": conditions}

    def _translate_logical(
        self,
        node: Mapping[str, Any],
        *,
        nested: bool,
        field_key: str | None,
    ) -> dict[str, Any] | None:
        first_key = next(iter(node), None)
        if first_key in LOGICAL_OPERATORS:
            value = node[first_key]
            children = value if isinstance(value, list) else [value]
            return {
                _LOGICAL_TO_QDRANT[first_key]: [
                    self._translate_node(child, nested=True, field_key=field_key) for child in children
                ]
            }

        if len(node) > 1 and not nested and not any(key.startswith("$") for key in node):
            conditions = []
            for key, value in node.items():
                child_key = f"{field_key}.{key}" if field_key else key
                conditions.append(self._translate_node(value, nested=True, field_key=child_key))
            return {"must": conditions}
        return None

    def _translate_match(self, operator: str, value: Any) -> dict[str, Any]:
        if operator == "$eq":
            return {"value": _normalize_value(value)}
        if operator == "$ne":
            return {"except": [_normalize_value(value)]}
        if operator == "$in":
            return {"any": _normalize_values(value)}
        if operator == "$nin":
            return {"except": _normalize_values(value)}
        if operator == "$regex":
            return {"text": escape_regex(value)}
        raise UnsupportedFilterError(f"Unsupported operator: {operator}")

    def _exists(self, value: Any, field_key: str | None) -> dict[str, Any]:
        field_key = self._require_key(field_key, "$exists")
        if value:
            return {"must_not": [{"is_null": {"key": field_key}}]}
        return {"is_null": {"key": field_key}}

    def _translate_custom(self, operator: str, value: Any, field_key: str | None) -> dict[str, Any]:
        if operator == "$count":
            return self._field(field_key, values_count={key.lstrip("$"): count for key, count in value.items()})
        if operator == "$geo":
            return self._field(field_key, **self._translate_geo(value))
        if operator == "$hasId":
            return {"has_id": list(value) if isinstance(value, (list, tuple)) else [value]}
        if operator == "$nested":
            key = self._require_key(field_key, operator)
            return {"nested": {"key": key, "filter": self._translate_node(value, nested=False)}}
        if operator == "$hasVector":
            return {"has_vector": value}
        if operator == "$datetime":
            range_ = {key.lstrip("$"): _normalize_value(bound) for key, bound in value["range"].items()}
            return self._field(field_key, range=range_)
        if operator == "$null":
            return {"is_null": {"key": self._require_key(field_key, operator)}}
        if operator == "$empty":
            return {"is_empty": {"key": self._require_key(field_key, operator)}}
        raise UnsupportedFilterError(f"Unsupported custom operator: {operator}")

    @staticmethod
    def _translate_geo(value: Mapping[str, Any]) -> dict[str, Any]:
        geo_type = value.get("type")
        if geo_type == "box":
            return {"geo_bounding_box": {"top_left": value["top_left"], "bottom_right": value["bottom_right"]}}
        if geo_type == "radius":
            return {"geo_radius": {"center": value["center"], "radius": value["radius"]}}
        if geo_type == "polygon":
            polygon: dict[str, Any] = {"exterior": value["exterior"]}
            if value.get("interiors") is not None:
                polygon["interiors"] = value["interiors"]
            return {"geo_polygon": polygon}
        raise UnsupportedFilterError(f"Unsupported geo filter type: {geo_type}")

    @staticmethod
    def _require_key(field_key: str | None, operator: str) -> str:
        if not field_key:
            raise UnsupportedFilterError(f"{operator} requires a field key")
        return field_key

    @classmethod
    def _field(cls, field_key: str | None, **condition: Any) -> dict[str, Any]:
        key = cls._require_key(field_key, "Field condition " + ", ".join(condition))
        return {"key": key, **condition}


__all__ = ["QdrantFilterTranslator", "SUPPORTED_OPERATORS", "escape_regex"]
