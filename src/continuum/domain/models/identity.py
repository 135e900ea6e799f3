"""Typed identity updates.

The generative model asks for identity changes as ``{field, action, value}``
with a dotted ``field``. Instead of writing arbitrary paths into the identity
document, each request is resolved into one of a small, closed set of
operations. Anything that does not resolve raises ``InvalidPathError``.

Resolvable fields:
    name, identity_statement                    replace (str)
    relationship.<partner|nature|since>         replace (str)
    core_beliefs.<key>                          replace (str)
    invariants                                  replace (list) or append (str)
    capabilities.<completed|in_progress|planned> replace (list) or append (str)
"""

import re
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from continuum.core.errors import InvalidPathError

_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

CapabilityTier = Literal["completed", "in_progress", "planned"]
RelationshipField = Literal["partner", "nature", "since"]

_CAPABILITY_TIERS = ("completed", "in_progress", "planned")
_RELATIONSHIP_FIELDS = ("partner", "nature", "since")


class UpdateMode(str, Enum):
    REPLACE = "replace"
    APPEND = "append"


class SetNarrative(BaseModel):
    op: Literal["set_narrative"] = "set_narrative"
    field: Literal["name", "identity_statement"]
    value: str

    @property
    def path(self) -> str:
        return self.field


class SetRelationship(BaseModel):
    op: Literal["set_relationship"] = "set_relationship"
    field: RelationshipField
    value: str

    @property
    def path(self) -> str:
        return f"relationship.{self.field}"


class SetCoreBelief(BaseModel):
    op: Literal["set_core_belief"] = "set_core_belief"
    key: str = Field(pattern=_KEY_PATTERN.pattern)
    value: str

    @property
    def path(self) -> str:
        return f"core_beliefs.{self.key}"


class ReplaceInvariants(BaseModel):
    op: Literal["replace_invariants"] = "replace_invariants"
    value: list[str]

    @property
    def path(self) -> str:
        return "invariants"


class AppendInvariant(BaseModel):
    op: Literal["append_invariant"] = "append_invariant"
    value: str

    @property
    def path(self) -> str:
        return "invariants"


class ReplaceCapabilities(BaseModel):
    op: Literal["replace_capabilities"] = "replace_capabilities"
    tier: CapabilityTier
    value: list[str]

    @property
    def path(self) -> str:
        return f"capabilities.{self.tier}"


class AppendCapability(BaseModel):
    op: Literal["append_capability"] = "append_capability"
    tier: CapabilityTier
    value: str

    @property
    def path(self) -> str:
        return f"capabilities.{self.tier}"


IdentityOperation = Annotated[
    SetNarrative
    | SetRelationship
    | SetCoreBelief
    | ReplaceInvariants
    | AppendInvariant
    | ReplaceCapabilities
    | AppendCapability,
    Field(discriminator="op"),
]

APPEND_OPERATIONS = (AppendInvariant, AppendCapability)

_operation_adapter: TypeAdapter[Any] = TypeAdapter(IdentityOperation)


class IdentityUpdate(BaseModel):
    """Raw identity update request as it arrives in an action payload."""

    field: str
    action: UpdateMode = UpdateMode.REPLACE
    value: Any = None

    @classmethod
    def parse(cls, payload: dict[str, Any]) -> IdentityOperation:
        """Resolve an action payload into a typed identity operation.

        Raises:
            InvalidPathError: If the field does not name an updatable part of
                the identity core, or append is requested on a non-list field.
        """
        data = dict(payload)
        if "field" not in data and "path" in data:
            data["field"] = data.pop("path")
        return cls.model_validate(data).resolve()

    def resolve(self) -> IdentityOperation:
        segments = self.field.split(".")
        head, rest = segments[0], segments[1:]
        append = self.action == UpdateMode.APPEND

        if head in ("name", "identity_statement") and not rest:
            if append:
                raise InvalidPathError(self.field, constraint="append requires a list field")
            operation = {"op": "set_narrative", "field": head}
        elif head == "relationship" and len(rest) == 1 and rest[0] in _RELATIONSHIP_FIELDS:
            if append:
                raise InvalidPathError(self.field, constraint="append requires a list field")
            operation = {"op": "set_relationship", "field": rest[0]}
        elif head == "core_beliefs" and len(rest) == 1 and _KEY_PATTERN.match(rest[0]):
            if append:
                raise InvalidPathError(self.field, constraint="append requires a list field")
            operation = {"op": "set_core_belief", "key": rest[0]}
        elif head == "invariants" and not rest:
            operation = {"op": "append_invariant" if append else "replace_invariants"}
        elif head == "capabilities" and len(rest) == 1 and rest[0] in _CAPABILITY_TIERS:
            operation = {"op": "append_capability" if append else "replace_capabilities", "tier": rest[0]}
        else:
            raise InvalidPathError(self.field)

        return _operation_adapter.validate_python({**operation, "value": self.value})
