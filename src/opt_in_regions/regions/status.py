"""Region opt-in status checks and enablement for a single account.

This module wraps the AWS Account API calls used by the poll cycle. Both
calls go through the throttling back-off, and any remaining failure is
translated into ``ProviderApiError``.
"""

from enum import Enum
from typing import Optional
import logging

from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import PollerSettings
from ..core.errors import ProviderApiError
from ..core.throttle import throttling_backoff


logger = logging.getLogger(__name__)


class RegionOptStatus(Enum):
    """Opt-in status values reported by the Account API."""

    ENABLED = "ENABLED"
    ENABLING = "ENABLING"
    DISABLING = "DISABLING"
    DISABLED = "DISABLED"
    ENABLED_BY_DEFAULT = "ENABLED_BY_DEFAULT"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["RegionOptStatus"]:
        """Parse a raw status, returning None for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def in_transition(self) -> bool:
        """Whether the region is between enabled and disabled."""
        return self in (RegionOptStatus.ENABLING, RegionOptStatus.DISABLING)


class RegionOptInManager:
    """Queries and changes region opt-in status through an Account client.

    The client must already hold credentials for the target account, in
    which case the calls need no ``AccountId`` parameter.
    """

    def __init__(self, account_client, settings: Optional[PollerSettings] = None):
        """Initialize region opt-in manager.

        Args:
            account_client: boto3 'account' client for the target account
            settings: Throttling settings
        """
        self.account_client = account_client
        self.settings = settings or PollerSettings()

    def _call(self, operation: str, **kwargs):
        method = getattr(self.account_client, operation)
        return throttling_backoff(
            lambda: method(**kwargs),
            max_attempts=self.settings.max_attempts,
            base_delay=self.settings.base_delay,
            max_delay=self.settings.max_delay,
        )

    def get_region_opt_status(self, region: str) -> Optional[str]:
        """Get the current opt-in status of a region.

        Args:
            region: Region identifier

        Returns:
            Raw status string as reported by the API

        Raises:
            ProviderApiError: When the API call fails
            ThrottlingError: When the call stays throttled
        """
        try:
            response = self._call("get_region_opt_status", RegionName=region)
        except ClientError as e:
            logger.error(f"Error checking region opt status: {e}")
            raise ProviderApiError(
                f"Failed to get opt status for {region}: {e}",
                operation="GetRegionOptStatus",
                error_code=e.response.get("Error", {}).get("Code"),
            ) from e
        except BotoCoreError as e:
            logger.error(f"Error checking region opt status: {e}")
            raise ProviderApiError(
                f"Failed to get opt status for {region}: {e}",
                operation="GetRegionOptStatus",
            ) from e

        return response.get("RegionOptStatus")

    def enable_region(self, region: str) -> None:
        """Request opt-in for a region. Repeated requests are harmless.

        Args:
            region: Region identifier

        Raises:
            ProviderApiError: When the API call fails
            ThrottlingError: When the call stays throttled
        """
        try:
            self._call("enable_region", RegionName=region)
        except ClientError as e:
            logger.error(f"Error opting in to region {region}: {e}")
            raise ProviderApiError(
                f"Failed to enable region {region}: {e}",
                operation="EnableRegion",
                error_code=e.response.get("Error", {}).get("Code"),
            ) from e
        except BotoCoreError as e:
            logger.error(f"Error opting in to region {region}: {e}")
            raise ProviderApiError(
                f"Failed to enable region {region}: {e}",
                operation="EnableRegion",
            ) from e
