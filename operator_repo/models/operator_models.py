# operator_repo/models/operator_models.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

# Document keys of the fields an update may overwrite; `_id` and `userId`
# are never part of it.
MUTABLE_FIELDS = (
    "name",
    "description",
    "image",
    "cost",
    "deploymentType",
    "pub",
    "inputs",
    "outputs",
    "config_values",
)


class Value(BaseModel):
    name: str
    type: str


class _OperatorFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    image: str = ""
    description: str = ""
    deployment_type: str = Field(default="", alias="deploymentType")
    cost: Optional[int] = None
    pub: bool = False
    config_values: List[Value] = Field(default_factory=list)
    inputs: List[Value] = Field(default_factory=list)
    outputs: List[Value] = Field(default_factory=list)

    @field_validator("image", "description", "deployment_type", mode="before")
    @classmethod
    def _none_to_empty_str(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("config_values", "inputs", "outputs", mode="before")
    @classmethod
    def _none_to_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v

    def mutable_fields(self) -> Dict[str, Any]:
        doc = self.model_dump(by_alias=True, mode="json")
        return {k: doc[k] for k in MUTABLE_FIELDS}


class OperatorPayload(_OperatorFields):
    """
    Body of create and update requests. Any `_id` or `userId` a client sends
    is dropped: ids are store-assigned and the owner comes from the caller.
    """
    name: str = Field(..., min_length=1)


class Operator(_OperatorFields):
    id: str = Field(..., alias="_id")
    user_id: str = Field(default="", alias="userId")

    @field_validator("id", mode="before")
    @classmethod
    def _object_id_to_str(cls, v: Any) -> Any:
        # ObjectId from the store, plain hex string from JSON
        return v if isinstance(v, str) else str(v)

    @field_validator("user_id", mode="before")
    @classmethod
    def _owner_none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class OperatorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    operators: List[Operator] = Field(default_factory=list)
    total: int = Field(default=0, alias="totalCount")


class BatchDeleteReport(BaseModel):
    """
    Outcome of a best-effort batch delete. Every requested id lands in
    exactly one bucket.
    """
    deleted: List[str] = Field(default_factory=list)
    unauthorized: List[str] = Field(default_factory=list)
    not_found: List[str] = Field(default_factory=list)
    invalid: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def complete(self) -> bool:
        return not (self.unauthorized or self.not_found or self.invalid or self.failed)

    def unprocessed(self) -> List[str]:
        return [*self.unauthorized, *self.not_found, *self.invalid, *self.failed.keys()]
