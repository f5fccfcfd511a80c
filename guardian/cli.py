import json
import sys
from pathlib import Path

import typer
from loguru import logger

from guardian.admission.admission_controller import AdmissionController
from guardian.config import AdmissionConfig
from guardian.exceptions import MalformedInput
from guardian.server import configure_logging
from guardian.services.admission import run as run_server

app = typer.Typer(no_args_is_help=True)


def serve():
    run_server()


def review(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="AdmissionReview JSON file"),
    validate_only: bool = typer.Option(False, "--validate-only", help="Skip mutation."),
    debug: bool = typer.Option(False, help="Enable debug logging."),
):
    configure_logging(debug)
    try:
        admission_review = json.loads(path.read_text())
        controller = AdmissionController(AdmissionConfig())
        handler = controller.validate_request if validate_only else controller.mutate_request
        allowed, response = handler(admission_review)
    except (json.JSONDecodeError, MalformedInput) as e:
        logger.error(f"Unable to review {path}:\n{e}")
        sys.exit(2)

    print(json.dumps(response, indent=2))
    sys.exit(0 if allowed else 1)


app.command(name="serve", help="Run the admission webhook server.")(serve)
app.command(name="review", help="Evaluate an AdmissionReview file offline.")(review)

if __name__ == "__main__":
    app()
