"""Opt-in regions onEvent handler.

Create and Update hand the properties straight to the is-complete handler,
which does the actual work. Delete has nothing to undo because opted-in
regions are left enabled.
"""

from typing import Any, Dict
import logging

from ..core.log_config import configure_logging


logger = logging.getLogger(__name__)


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Handle a custom resource lifecycle event.

    Args:
        event: CloudFormation custom resource event
        context: Lambda context

    Returns:
        Provider framework response

    Raises:
        ValueError: For an unknown request type
    """
    configure_logging()
    request_type = event.get("RequestType")
    logger.info(f"Received {request_type} request for opt-in regions")

    if request_type in ("Create", "Update"):
        return {
            "IsComplete": False,
            "Status": "SUCCESS",
            "Props": (event.get("ResourceProperties") or {}).get("props"),
        }

    if request_type == "Delete":
        return {
            "IsComplete": True,
            "Status": "SUCCESS",
        }

    raise ValueError(f"Unexpected request type: {request_type}")
