"""
Stack definitions.

A Stack is the desired state of a fleet of EC2 servers. We don't persist
anything, so the Stack name is the only identity a fleet has across
deployments.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator

from risr.errors import StackFileError, StackValidationError


class Stack(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(min_length=1)
    ami: str = Field(min_length=1)
    instance_type: str = Field(alias="instanceType", min_length=1)
    replicas: int = Field(default=0, ge=0)
    subnet_ids: tuple[str, ...] = Field(default=(), alias="subnetIDs")
    security_group_ids: tuple[str, ...] | None = Field(default=None, alias="securityGroupIDs")
    key_name: str | None = Field(default=None, alias="keyName")
    user_data: str | None = Field(default=None, alias="userData")
    iam_instance_profile: str | None = Field(default=None, alias="iamInstanceProfile")
    target_group_arn: str | None = Field(default=None, alias="targetGroupARN")
    health_check_grace_period: int | None = Field(default=None, ge=0, alias="healthCheckGracePeriod")
    tags: Mapping[str, str] = Field(default_factory=dict)

    @field_validator("subnet_ids", mode="before")
    @classmethod
    def _null_subnets(cls, value):
        return () if value is None else value

    @field_validator("replicas", mode="before")
    @classmethod
    def _null_replicas(cls, value):
        return 0 if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def _null_tags(cls, value):
        if value is None:
            return {}
        if isinstance(value, dict):
            # YAML turns `version: 2` into an int
            return {str(k): "" if v is None else str(v) for k, v in value.items()}
        return value

    @field_validator("tags", mode="after")
    @classmethod
    def _freeze_tags(cls, value):
        return MappingProxyType(dict(value))

    @field_serializer("tags")
    def _dump_tags(self, value):
        return dict(value)


def parse_stack(text: str) -> Stack:
    """Decode a YAML (or JSON) Stack definition."""
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise StackValidationError(f"invalid YAML: {e}") from e

    if not isinstance(document, dict):
        raise StackValidationError("Stack definition must be a mapping")

    try:
        return Stack.model_validate(document)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise StackValidationError(problems) from e


def read_stack_file(path: str | Path) -> str:
    try:
        return Path(path).read_text()
    except OSError as e:
        raise StackFileError(f"cannot read {path}: {e}") from e


def load_stack(path: str | Path) -> Stack:
    return parse_stack(read_stack_file(path))
