"""JSON schema generation for AI function calling from tool descriptors."""

import json
import types
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional, Tuple, Union, get_args, get_origin

from ...tools.types import ToolDescriptor, ToolParameter

if TYPE_CHECKING:
    from ...tools.registry import ToolRegistry


STRING = "string"
INTEGER = "integer"
NUMBER = "number"
BOOLEAN = "boolean"
ARRAY = "array"

NUMERIC_TYPES = frozenset({INTEGER, NUMBER})
JSON_TYPES = frozenset({STRING, INTEGER, NUMBER, BOOLEAN, ARRAY})

# X | Y unions have their own origin on Python 3.10+
_UNION_ORIGINS = tuple(o for o in (Union, getattr(types, "UnionType", None)) if o is not None)

_TYPE_NAMES = {
    "string": STRING,
    "str": STRING,
    "text": STRING,
    "integer": INTEGER,
    "int": INTEGER,
    "long": INTEGER,
    "number": NUMBER,
    "float": NUMBER,
    "double": NUMBER,
    "decimal": NUMBER,
    "boolean": BOOLEAN,
    "bool": BOOLEAN,
    "array": ARRAY,
    "list": ARRAY,
    "tuple": ARRAY,
    "set": ARRAY,
}

_PYTHON_TYPES = (
    # bool must be checked before int
    (bool, BOOLEAN),
    (int, INTEGER),
    (float, NUMBER),
    (Decimal, NUMBER),
    (str, STRING),
    (list, ARRAY),
    (tuple, ARRAY),
    (set, ARRAY),
    (frozenset, ARRAY),
)


def _enum_member_values(enum_type: type) -> List[Any]:
    return [m.value if isinstance(m.value, (str, int, float)) else m.name for m in enum_type]


def json_type_of_value(value: Any) -> Optional[str]:
    """JSON primitive type of a literal value, or None for non-primitives."""
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, int):
        return INTEGER
    if isinstance(value, (float, Decimal)):
        return NUMBER
    if isinstance(value, str):
        return STRING
    return None


def _literal_json_type(values: List[Any]) -> str:
    value_types = {json_type_of_value(v) for v in values}
    if len(value_types) == 1 and None not in value_types:
        return value_types.pop()
    if value_types and value_types <= NUMERIC_TYPES:
        return NUMBER
    return STRING


def _resolve_type_name(declared: str) -> Tuple[str, bool, Optional[List[Any]]]:
    # String annotations: "int", "Optional[int]", "int | None", "List[str]"
    name = declared.strip()
    nullable = False
    if name.startswith("Optional[") and name.endswith("]"):
        name = name[len("Optional["):-1].strip()
        nullable = True

    if "|" in name and "[" not in name:
        members = [member.strip() for member in name.split("|")]
        non_null = [m for m in members if m.lower() not in ("none", "nonetype")]
        nullable = nullable or len(non_null) < len(members)
        if len(non_null) != 1:
            return STRING, nullable, None
        name = non_null[0]

    base = name.split("[", 1)[0].strip().lower()
    return _TYPE_NAMES.get(base, STRING), nullable, None


def resolve_declared_type(declared: Any) -> Tuple[str, bool, Optional[List[Any]]]:
    """
    Map a declared parameter type onto a JSON schema primitive.

    Args:
        declared: Python type, typing construct or type name

    Returns:
        Tuple of (json type, nullable, enum values or None). Unrecognised
        types map to ``string``.
    """
    if declared is None or declared is type(None):
        return STRING, True, None

    if isinstance(declared, str):
        return _resolve_type_name(declared)

    origin = get_origin(declared)
    if origin in _UNION_ORIGINS:
        args = [a for a in get_args(declared) if a is not type(None)]
        nullable = len(args) < len(get_args(declared))
        if len(args) == 1:
            json_type, inner_nullable, enum_values = resolve_declared_type(args[0])
            return json_type, nullable or inner_nullable, enum_values
        return STRING, nullable, None

    if origin is Literal:
        values = list(get_args(declared))
        return _literal_json_type(values), False, values

    if origin is not None:
        # List[int], Tuple[str, ...], Dict[str, Any] and friends
        declared = origin

    if isinstance(declared, type):
        if issubclass(declared, Enum):
            members = _enum_member_values(declared)
            return _literal_json_type(members), False, members
        for python_type, json_type in _PYTHON_TYPES:
            if issubclass(declared, python_type):
                return json_type, False, None

    return STRING, False, None


def parameter_json_type(param: ToolParameter) -> str:
    """JSON primitive type of a parameter."""
    return resolve_declared_type(param.type)[0]


def is_parameter_required(param: ToolParameter) -> bool:
    """A parameter is required iff it has no default and is not nullable."""
    _, nullable, _ = resolve_declared_type(param.type)
    return not param.has_default and not (param.nullable or nullable)


def generate_property_schema(param: ToolParameter) -> Dict[str, Any]:
    """Generate the schema entry for a single parameter."""
    json_type, _, enum_values = resolve_declared_type(param.type)
    schema: Dict[str, Any] = {"type": json_type}

    if param.description:
        schema["description"] = param.description

    if param.enum_values is not None:
        enum_values = list(param.enum_values)
    if enum_values:
        schema["enum"] = enum_values

    if json_type == ARRAY:
        schema["items"] = {"type": STRING}

    return schema


def generate_parameter_schema(descriptor: ToolDescriptor) -> Dict[str, Any]:
    """
    Generate the parameters object for a tool descriptor.

    Tools without parameter metadata get a single required ``input`` string.

    Args:
        descriptor: Tool descriptor to derive the schema from

    Returns:
        JSON schema object with one property per parameter
    """
    properties: Dict[str, Any] = {}
    required: List[str] = []

    for param in descriptor.effective_parameters:
        properties[param.name] = generate_property_schema(param)
        if is_parameter_required(param):
            required.append(param.name)

    return {
        "type": "object",
        "properties": properties,
        "required": required,
    }


def generate_function_schema(descriptor: ToolDescriptor) -> Dict[str, Any]:
    """
    Generate a function schema for AI function calling from a descriptor.

    Args:
        descriptor: Tool descriptor to generate schema for

    Returns:
        Function schema ``{"name", "description", "parameters"}``
    """
    return {
        "name": descriptor.name,
        "description": descriptor.description,
        "parameters": generate_parameter_schema(descriptor),
    }


def generate_all_function_schemas(registry: "ToolRegistry") -> List[Dict[str, Any]]:
    """Function schemas for all tools in registry, in registration order."""
    return [registry.get_function_schema(name) for name in registry.get_tool_names()]


def schema_problems(schema: Dict[str, Any]) -> List[str]:
    """
    List what is wrong with a function schema before it is offered to a model.

    Args:
        schema: Function schema ``{"name", "description", "parameters"}``

    Returns:
        Human-readable problems; empty when the schema is usable
    """
    problems = [f"missing '{key}'" for key in ("name", "description", "parameters") if key not in schema]
    parameters = schema.get("parameters")
    if parameters is None:
        return problems
    if not isinstance(parameters, dict) or parameters.get("type") != "object":
        return problems + ["parameters must be an object schema"]

    properties = parameters.get("properties", {})
    for name in parameters.get("required", []):
        if name not in properties:
            problems.append(f"required parameter '{name}' has no property")

    for name, prop in properties.items():
        json_type = prop.get("type")
        if json_type not in JSON_TYPES:
            problems.append(f"parameter '{name}' has unsupported type {json_type!r}")
            continue
        for value in prop.get("enum", ()):
            value_type = json_type_of_value(value)
            if value_type != json_type and not (json_type == NUMBER and value_type == INTEGER):
                problems.append(f"enum value {value!r} of parameter '{name}' is not of type {json_type}")

    return problems


def pretty_print_schemas(schemas: List[Dict[str, Any]]) -> str:
    """Pretty print function schemas for debugging."""
    return json.dumps(schemas, indent=2, ensure_ascii=False)
