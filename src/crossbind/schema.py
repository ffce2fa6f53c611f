from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class AnnotationsDTO(BaseModel):
    pure_virtual: bool = False
    special_member: Optional[str] = None
    reference_params: List[str] = []
    reference_return: bool = False
    unused_template_param: bool = False


class ParamDTO(BaseModel):
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)


class DeclarationDTO(BaseModel):
    name: str = Field(min_length=1)
    native_name: Optional[str] = None
    namespace: List[str] = []
    owning_type: Optional[str] = None
    params: List[ParamDTO] = []
    return_type: Optional[str] = None
    virtual_this_type: Optional[str] = None
    visibility: Literal["public", "private"] = "public"
    annotations: AnnotationsDTO = AnnotationsDTO()


class DeclarationDocumentDTO(BaseModel):
    pod_safe_types: List[str] = []
    declarations: List[DeclarationDTO] = []


class PlanSummaryDTO(BaseModel):
    bound: int
    shims: int
    skipped: int
    errors: int
    extra_apis: int
    stopped_early: bool = False
