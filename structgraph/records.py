"""
Input record models.

These mirror the structured record set produced by the project scanner. Field
names are camelCase on the wire; snake_case and the scanner's older field
names (``nodeId``, ``fromNodeId``, ``callType``, ...) are accepted as well.
"""
from typing import List, Dict, Any, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


REFERENCE_PREFIXES = ("Ref →", "Ref ->")


class RecordModel(BaseModel):
    """Base model for all input records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Serializers emit null for empty lists and unset strings; fall back to defaults.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class MethodRecord(RecordModel):
    method_name: str = ""
    method_type: str = ""
    is_static: bool = False
    member_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("memberId", "nodeId", "member_id")
    )


class EventRecord(RecordModel):
    event_name: str = ""
    is_static: bool = False
    member_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("memberId", "nodeId", "member_id")
    )


class ComponentRecord(RecordModel):
    component_type: str = ""
    class_name: str = ""
    instance_id: Optional[str] = None
    methods: List[MethodRecord] = Field(default_factory=list)
    properties: Dict[str, Any] = Field(default_factory=dict)

    def scalar_properties(self) -> List[tuple]:
        """Return (name, display value) for every property that becomes a constant node.

        Reference values and empty strings are skipped; ``None`` renders as ``null``.
        """
        result = []
        for name, value in self.properties.items():
            text = "null" if value is None else str(value)
            if not text or text.startswith(REFERENCE_PREFIXES):
                continue
            result.append((name, text))
        return result


class GameObjectRecord(RecordModel):
    name: str = ""
    instance_id: str = ""
    components: List[ComponentRecord] = Field(default_factory=list)
    children: List["GameObjectRecord"] = Field(default_factory=list)


class SceneRecord(RecordModel):
    scene_name: str = ""
    scene_path: str = ""
    game_objects: List[GameObjectRecord] = Field(default_factory=list)


class PrefabRecord(RecordModel):
    prefab_name: str = ""
    prefab_path: str = ""
    root_object: Optional[GameObjectRecord] = None


class ExternalClassRecord(RecordModel):
    namespace_name: str = ""
    class_name: str = ""
    type: str = "class"
    is_lifecycle_type: bool = Field(
        default=False,
        validation_alias=AliasChoices("isLifecycleType", "isMonoBehaviour", "is_lifecycle_type"),
    )
    methods: List[MethodRecord] = Field(default_factory=list)
    events: List[EventRecord] = Field(default_factory=list)
    static_initializers: List[MethodRecord] = Field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        if self.namespace_name:
            return f"{self.namespace_name}.{self.class_name}"
        return self.class_name


class CallRecord(RecordModel):
    from_id: str = Field(default="", validation_alias=AliasChoices("fromId", "fromNodeId", "from_id"))
    to_id: str = Field(default="", validation_alias=AliasChoices("toId", "toNodeId", "to_id"))
    call_kind: str = Field(default="", validation_alias=AliasChoices("callKind", "callType", "call_kind"))
    library_name: Optional[str] = None
    method_name: Optional[str] = None
    field_name: Optional[str] = None

    def label(self) -> str:
        """Edge label: field name for field references, else method, field, call kind."""
        if self.call_kind == "field_reference" and self.field_name:
            return self.field_name
        return self.method_name or self.field_name or self.call_kind or ""


class StructureRelationRecord(RecordModel):
    from_id: str = Field(default="", validation_alias=AliasChoices("fromId", "fromNodeId", "from_id"))
    to_id: str = Field(default="", validation_alias=AliasChoices("toId", "toNodeId", "to_id"))
    relation_kind: str = Field(
        default="", validation_alias=AliasChoices("relationKind", "relationType", "relation_kind")
    )


class ProjectRecords(RecordModel):
    """The complete record set consumed by one build."""
    scenes: List[SceneRecord] = Field(default_factory=list)
    external_classes: List[ExternalClassRecord] = Field(default_factory=list)
    calls: List[CallRecord] = Field(default_factory=list)
    structure_relations: List[StructureRelationRecord] = Field(default_factory=list)
    prefabs: List[PrefabRecord] = Field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {
            "scenes": len(self.scenes),
            "external_classes": len(self.external_classes),
            "calls": len(self.calls),
            "structure_relations": len(self.structure_relations),
            "prefabs": len(self.prefabs),
        }


GameObjectRecord.model_rebuild()
