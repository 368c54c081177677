"""Opt-in regions isComplete handler.

Invoked repeatedly by the provider framework with the same properties.
Each invocation runs one poll cycle and reports whether every member
account has every requested opt-in region enabled.
"""

from typing import Any, Dict, Optional
import logging

from ..core.aws_client import AWSClientManager
from ..core.config import PollerSettings
from ..core.log_config import configure_logging
from ..core.props import OptInRegionsProps
from ..regions.poller import OptInRegionsPoller


logger = logging.getLogger(__name__)


def handler(event: Dict[str, Any], context: Any,
            poller: Optional[OptInRegionsPoller] = None) -> Dict[str, bool]:
    """Run one poll cycle.

    Args:
        event: CloudFormation custom resource event
        context: Lambda context
        poller: Poller to use, built from the environment when omitted

    Returns:
        ``{"IsComplete": bool}``

    Raises:
        PropsValidationError: When the event properties are malformed
    """
    configure_logging()
    props = OptInRegionsProps.from_event(event)

    if poller is None:
        poller = OptInRegionsPoller(
            AWSClientManager(region_name=props.home_region,
                             validate_credentials=False),
            PollerSettings.from_environment(),
        )

    result = poller.process_all_accounts_regions(props)
    for outcome in result.pending:
        logger.info(
            "Pair not complete",
            extra={
                "account_id": outcome.account_id,
                "region": outcome.region,
                "status": outcome.status,
                "error": outcome.error,
            },
        )

    return {
        "IsComplete": result.is_complete,
    }
