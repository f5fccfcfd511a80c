import sys
from abc import abstractmethod

import uvicorn
from fastapi import FastAPI
from loguru import logger

from guardian.config import ServerConfig


def configure_logging(debug: bool = False) -> None:
    """Send loguru output to stderr at INFO, or DEBUG in debug mode."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if debug else "INFO")


class WebServer:
    """FastAPI server base for the context guardian webhooks."""

    def __init__(self, config: ServerConfig):
        self.config = config
        self.app = FastAPI(debug=config.debug)
        self._setup_routes()

    @abstractmethod
    def _setup_routes(self):
        """
        Setup web routes.
        Example:
        self.app.add_api_route('/route', self.handle_route, methods=["POST"])
        """
        raise NotImplementedError()

    def run(self):
        """Serve the app with uvicorn over a Unix socket or TCP, with TLS when configured."""
        # Build kwargs dynamically for uvicorn.run
        uvicorn_kwargs = {}

        if self.config.uds_path:
            logger.info(f"Starting context guardian webhook on Unix socket {self.config.uds_path}")
            uvicorn_kwargs["uds"] = self.config.uds_path
        else:
            logger.info(
                f"Starting context guardian webhook on {self.config.bind_address}:{self.config.port}"
            )
            uvicorn_kwargs["host"] = self.config.bind_address
            uvicorn_kwargs["port"] = self.config.port
            # Apply TLS if configured for TCP
            if self.config.tls_cert_path and self.config.tls_key_path:
                uvicorn_kwargs["ssl_certfile"] = str(self.config.tls_cert_path)
                uvicorn_kwargs["ssl_keyfile"] = str(self.config.tls_key_path)
                logger.info(f"TLS enabled with certificate {self.config.tls_cert_path}")

        uvicorn.run(
            self.app,
            log_level="debug" if self.config.debug else "info",
            **uvicorn_kwargs,
        )
