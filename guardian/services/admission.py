"""Admission webhook endpoints for the context guardian policy."""

import asyncio
from typing import Any, Callable, Dict, Tuple

from fastapi import Body, HTTPException, status
from loguru import logger

from guardian.admission.admission_controller import AdmissionController
from guardian.config import AdmissionConfig
from guardian.exceptions import MalformedInput
from guardian.models import HealthResponse
from guardian.server import WebServer, configure_logging


class AdmissionWebhookServer(WebServer):
    """FastAPI server exposing the mutating and validating webhooks."""

    def __init__(self, config: AdmissionConfig):
        self.controller = AdmissionController(config)
        super().__init__(config)

    def _setup_routes(self) -> None:
        self.app.add_api_route(
            "/health",
            self.health,
            methods=["GET"],
            response_model=HealthResponse,
            summary="Health check",
        )
        self.app.add_api_route(
            "/mutate",
            self.mutate,
            methods=["POST"],
            summary="Mutating webhook",
            description="Normalizes the pod security context and decides on the result",
        )
        self.app.add_api_route(
            "/validate",
            self.validate,
            methods=["POST"],
            summary="Validating webhook",
            description="Decides on the pod as received, without mutating it",
        )

    async def health(self) -> HealthResponse:
        return HealthResponse()

    async def mutate(self, admission_review: Dict[str, Any] = Body(...)) -> Dict:
        return await self._review(self.controller.mutate_request, admission_review)

    async def validate(self, admission_review: Dict[str, Any] = Body(...)) -> Dict:
        return await self._review(self.controller.validate_request, admission_review)

    async def _review(
        self,
        handler: Callable[[Dict], Tuple[bool, Dict]],
        admission_review: Dict[str, Any],
    ) -> Dict:
        try:
            _, response = await asyncio.wait_for(
                asyncio.get_running_loop().run_in_executor(None, handler, admission_review),
                timeout=self.config.request_timeout,
            )
            return response
        except MalformedInput as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except asyncio.TimeoutError:
            logger.error("Admission review timed out after {}s", self.config.request_timeout)
            raise HTTPException(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                detail="Admission review timed out",
            )


def run() -> None:
    """Main entry point."""
    try:
        config = AdmissionConfig()
        configure_logging(config.debug)

        if config.debug:
            logger.debug("Debug mode enabled")
            logger.debug("Configuration: {}", config.export_json())

        if not config.uds_path and (not config.tls_cert_path or not config.tls_key_path):
            logger.warning("TLS certificates not configured, running in insecure mode")

        server = AdmissionWebhookServer(config)
        server.run()

    except Exception as e:
        logger.exception("Failed to start admission webhook: {}", e)
        raise


if __name__ == "__main__":
    run()
