"""
AdmissionReview (admission.k8s.io/v1) wire models.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

ADMISSION_API_VERSION = "admission.k8s.io/v1"


class GroupVersionKind(BaseModel):
    group: str = ""
    version: str = "v1"
    kind: str


class AdmissionRequest(BaseModel):
    """The request half of an AdmissionReview, immutable as received."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    uid: str
    kind: GroupVersionKind
    operation: str
    namespace: Optional[str] = None
    name: Optional[str] = None
    dry_run: bool = Field(default=False, alias="dryRun")
    # null for DELETE and some CONNECT requests
    object: Optional[Dict[str, Any]] = None


class AdmissionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uid: str
    allowed: bool
    status: Optional[Dict[str, Any]] = None
    patch: Optional[str] = None
    patch_type: Optional[str] = Field(default=None, alias="patchType")


class AdmissionReview(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(default=ADMISSION_API_VERSION, alias="apiVersion")
    kind: str = "AdmissionReview"
    request: Optional[AdmissionRequest] = None
    response: Optional[AdmissionResponse] = None


class HealthResponse(BaseModel):
    status: str = "ok"
