import base64
import json
from typing import Dict, Optional, Tuple

from pydantic import ValidationError

from guardian.admission.pipeline import AdmissionPipeline, Decision
from guardian.config import AdmissionConfig
from guardian.exceptions import MalformedInput
from guardian.models import AdmissionRequest, AdmissionResponse, AdmissionReview


class AdmissionController:
    def __init__(self, config: Optional[AdmissionConfig] = None, pipeline: Optional[AdmissionPipeline] = None):
        self.config = config or AdmissionConfig()
        self.pipeline = pipeline or AdmissionPipeline.from_config(self.config)

    def mutate_request(self, admission_review: Dict) -> Tuple[bool, Dict]:
        """Mutate and validate; the response carries the patch on approval."""
        request = self.parse_request(admission_review)
        decision = self.pipeline.process(request)
        return decision.allowed, self.build_response(request, decision)

    def validate_request(self, admission_review: Dict) -> Tuple[bool, Dict]:
        """Validate the object as received, without mutating it."""
        request = self.parse_request(admission_review)
        decision = self.pipeline.validate(request)
        return decision.allowed, self.build_response(request, decision)

    @staticmethod
    def parse_request(admission_review: Dict) -> AdmissionRequest:
        if not isinstance(admission_review, dict):
            raise MalformedInput("AdmissionReview must be a JSON object")
        try:
            review = AdmissionReview.model_validate(admission_review)
        except ValidationError as e:
            raise MalformedInput(f"Invalid AdmissionReview: {e}") from e
        if review.request is None:
            raise MalformedInput("AdmissionReview has no request")
        return review.request

    @staticmethod
    def build_response(request: AdmissionRequest, decision: Decision) -> Dict:
        response = AdmissionResponse(uid=request.uid, allowed=decision.allowed)

        if decision.allowed:
            response.status = {"message": "Allowed"}
            if decision.patch:
                response.patch = base64.b64encode(json.dumps(decision.patch).encode("utf-8")).decode("utf-8")
                response.patch_type = "JSONPatch"
        else:
            response.status = {"code": 403, "message": decision.reason}

        review = AdmissionReview(response=response)
        return review.model_dump(by_alias=True, exclude_none=True)
