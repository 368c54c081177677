"""Opt-in regions onEvent handler that prepares STS token preferences.

Alternative to ``on_event`` for deployments where member accounts still
issue version 1 tokens from the global STS endpoint. It switches every
account to version 2 tokens and then leaves the opt-in itself to the
is-complete handler.
"""

from typing import Any, Dict, Optional
import logging

from ..core.aws_client import AWSClientManager
from ..core.config import PollerSettings
from ..core.log_config import configure_logging
from ..core.props import OptInRegionsProps
from ..regions.token_preferences import StsTokenPreferencesManager


logger = logging.getLogger(__name__)


def handler(event: Dict[str, Any], context: Any,
            manager: Optional[StsTokenPreferencesManager] = None) -> Dict[str, bool]:
    """Handle a custom resource lifecycle event.

    Args:
        event: CloudFormation custom resource event
        context: Lambda context
        manager: Token preferences manager, built from the environment when omitted

    Returns:
        Provider framework response

    Raises:
        ValueError: For an unknown request type
    """
    configure_logging()
    request_type = event.get("RequestType")

    if request_type in ("Create", "Update"):
        props = OptInRegionsProps.from_event(event)
        if manager is None:
            manager = StsTokenPreferencesManager(
                AWSClientManager(region_name=props.home_region,
                                 validate_credentials=False),
                PollerSettings.from_environment(),
            )
        changed = manager.apply_to_accounts(props)
        logger.info(f"STS token preferences updated for accounts: {changed}")
        return {"IsComplete": False}

    if request_type == "Delete":
        return {"IsComplete": True}

    raise ValueError(f"Unexpected request type: {request_type}")
