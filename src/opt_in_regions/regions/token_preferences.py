"""STS global endpoint token preferences for member accounts.

Session tokens issued by the global STS endpoint are only valid in opt-in
regions when the account is set to issue version 2 tokens. This runs
before the regions are enabled so that later cross-account calls into
those regions succeed.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional
import logging

from botocore.exceptions import BotoCoreError, ClientError

from ..core.aws_client import AWSClientManager
from ..core.config import PollerSettings
from ..core.credentials import CrossAccountCredentialProvider
from ..core.errors import ProviderApiError
from ..core.props import OptInRegionsProps
from ..core.throttle import throttling_backoff


logger = logging.getLogger(__name__)

TOKEN_VERSION_V2 = 2


class StsTokenPreferencesManager:
    """Switches accounts to version 2 global endpoint session tokens."""

    def __init__(self, aws_client: AWSClientManager,
                 settings: Optional[PollerSettings] = None,
                 credential_provider: Optional[CrossAccountCredentialProvider] = None):
        """Initialize STS token preferences manager.

        Args:
            aws_client: Client manager for the management account
            settings: Throttling and concurrency settings
            credential_provider: Provider for member account credentials
        """
        self.aws_client = aws_client
        self.settings = settings or PollerSettings()
        self._credential_provider = credential_provider

    def _backoff(self, func):
        return throttling_backoff(
            func,
            max_attempts=self.settings.max_attempts,
            base_delay=self.settings.base_delay,
            max_delay=self.settings.max_delay,
        )

    def _iam_client(self, account_id: str, props: OptInRegionsProps,
                    management_account_id: str):
        region = props.token_preferences_region
        if account_id == management_account_id:
            return self.aws_client.get_client("iam", region)

        if self._credential_provider is None:
            self._credential_provider = CrossAccountCredentialProvider(
                self.aws_client, props.home_region, self.settings
            )
        credentials = self._credential_provider.get_credentials(
            account_id, props.partition, props.management_account_access_role
        )
        session = self._credential_provider.session_for(credentials, region)
        return session.client("iam", region_name=region)

    def set_token_preferences(self, account_id: str, props: OptInRegionsProps,
                              management_account_id: str) -> bool:
        """Make an account issue version 2 tokens from the global endpoint.

        Args:
            account_id: Account to update
            props: Custom resource properties
            management_account_id: Account whose own credentials are used

        Returns:
            True if the preference was changed, False if already set

        Raises:
            FederationError: When member credentials cannot be obtained
            ProviderApiError: When an IAM call fails
        """
        iam_client = self._iam_client(account_id, props, management_account_id)

        try:
            summary = self._backoff(iam_client.get_account_summary)
            version = summary.get("SummaryMap", {}).get("GlobalEndpointTokenVersion")
            if version == TOKEN_VERSION_V2:
                logger.info(f"Account {account_id} already issues v2 STS tokens")
                return False

            self._backoff(
                lambda: iam_client.set_security_token_service_preferences(
                    GlobalEndpointTokenVersion="v2Token"
                )
            )
        except ClientError as e:
            raise ProviderApiError(
                f"Failed to set STS token preferences for {account_id}: {e}",
                operation="SetSecurityTokenServicePreferences",
                error_code=e.response.get("Error", {}).get("Code"),
            ) from e
        except BotoCoreError as e:
            raise ProviderApiError(
                f"Failed to set STS token preferences for {account_id}: {e}",
                operation="SetSecurityTokenServicePreferences",
            ) from e

        logger.info(f"Account {account_id} switched to v2 STS tokens")
        return True

    def apply_to_accounts(self, props: OptInRegionsProps) -> List[str]:
        """Apply token preferences to every account in the props.

        Args:
            props: Custom resource properties

        Returns:
            Account IDs whose preference was changed
        """
        management_account_id = (
            props.management_account_id or self.aws_client.get_account_id()
        )
        account_ids = list(dict.fromkeys(props.account_ids))
        if not account_ids:
            return []

        if self._credential_provider is None and any(
            a != management_account_id for a in account_ids
        ):
            self._credential_provider = CrossAccountCredentialProvider(
                self.aws_client, props.home_region, self.settings
            )
        if management_account_id in account_ids:
            # Create the shared client before worker threads start.
            self.aws_client.get_client("iam", props.token_preferences_region)

        workers = min(self.settings.max_concurrency, len(account_ids))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(
                lambda a: self.set_token_preferences(a, props, management_account_id),
                account_ids,
            ))

        return [a for a, changed in zip(account_ids, results) if changed]
