"""Poll cycle driving member accounts towards enabled opt-in regions.

One poll cycle checks every (account, region) pair once: it obtains
delegated credentials for the account, reads the region opt-in status,
and requests opt-in when the region is still disabled. The cycle is
complete only when every pair reports an enabled region. The custom
resource provider keeps re-invoking the cycle until then, so a pair that
fails is simply retried from scratch on the next invocation.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple
import logging

from botocore.exceptions import BotoCoreError, ClientError

from ..core.aws_client import AWSClientManager
from ..core.config import PollerSettings
from ..core.credentials import CrossAccountCredentialProvider
from ..core.errors import FederationError, ProviderApiError, ThrottlingError
from ..core.props import OptInRegionsProps
from .opt_in_regions import filter_opt_in_regions
from .status import RegionOptInManager, RegionOptStatus


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairOutcome:
    """Result of checking one account and region in one poll cycle."""

    account_id: str
    region: str
    is_complete: bool
    status: Optional[str] = None
    error: Optional[str] = None


@dataclass
class PollResult:
    """Outcomes of a whole poll cycle."""

    outcomes: List[PairOutcome] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.error is None and all(o.is_complete for o in self.outcomes)

    @property
    def pending(self) -> List[PairOutcome]:
        return [o for o in self.outcomes if not o.is_complete]

    @property
    def failed(self) -> List[PairOutcome]:
        return [o for o in self.outcomes if o.error is not None]


CredentialProviderFactory = Callable[
    [AWSClientManager, str, PollerSettings], CrossAccountCredentialProvider
]


def default_manager_factory(session, home_region: str,
                            settings: PollerSettings) -> RegionOptInManager:
    """Create a region opt-in manager on a pair-local Account client."""
    return RegionOptInManager(
        session.client("account", region_name=home_region), settings
    )


class OptInRegionsPoller:
    """Runs poll cycles for the opt-in regions custom resource."""

    def __init__(
        self,
        aws_client: AWSClientManager,
        settings: Optional[PollerSettings] = None,
        credential_provider_factory: Optional[CredentialProviderFactory] = None,
        manager_factory: Optional[Callable] = None,
    ) -> None:
        """Initialize poller.

        Args:
            aws_client: Client manager for the management account
            settings: Poll cycle settings
            credential_provider_factory: Builds the credential provider
            manager_factory: Builds a RegionOptInManager from a session
        """
        self.aws_client = aws_client
        self.settings = settings or PollerSettings()
        self._credential_provider_factory = (
            credential_provider_factory or CrossAccountCredentialProvider
        )
        self._manager_factory = manager_factory or default_manager_factory

    def build_pairs(self, props: OptInRegionsProps,
                    management_account_id: Optional[str]) -> List[Tuple[str, str]]:
        """List the (account, region) pairs that need checking.

        The management account and regions that cannot be opted in are
        left out.

        Args:
            props: Custom resource properties
            management_account_id: Account never included in the pairs

        Returns:
            Ordered list of unique (account_id, region) tuples
        """
        regions = filter_opt_in_regions(props.enabled_regions)
        skipped = [r for r in props.enabled_regions if r not in regions]
        if skipped:
            logger.info(f"Skipping regions that do not require opt-in: {skipped}")

        pairs = []
        seen_accounts = set()
        for account_id in props.account_ids:
            if account_id == management_account_id or account_id in seen_accounts:
                continue
            seen_accounts.add(account_id)
            for region in regions:
                pairs.append((account_id, region))
        return pairs

    def resolve_management_account_id(self, props: OptInRegionsProps) -> str:
        """Get the management account ID, asking STS when props omit it."""
        if props.management_account_id:
            return props.management_account_id
        account_id = self.aws_client.get_account_id()
        logger.info(
            f"managementAccountId not supplied, using caller account {account_id}"
        )
        return account_id

    def process_account_region(
        self,
        account_id: str,
        region: str,
        props: OptInRegionsProps,
        credential_provider: Optional[CrossAccountCredentialProvider] = None,
    ) -> PairOutcome:
        """Advance one account and region by one step.

        Args:
            account_id: Member account ID
            region: Opt-in region to enable
            props: Custom resource properties
            credential_provider: Shared provider for the poll cycle

        Returns:
            PairOutcome, complete only when the region is enabled

        Raises:
            FederationError: Only when ``propagate_federation_errors`` is set
        """
        if credential_provider is None:
            credential_provider = self._credential_provider_factory(
                self.aws_client, props.home_region, self.settings
            )

        try:
            credentials = credential_provider.get_credentials(
                account_id, props.partition, props.management_account_access_role
            )
        except FederationError as e:
            logger.error(f"Error processing account id {account_id}: {e}")
            if self.settings.propagate_federation_errors:
                raise
            return PairOutcome(account_id, region, False, error=str(e))

        session = credential_provider.session_for(credentials, props.home_region)
        manager = self._manager_factory(session, props.home_region, self.settings)

        try:
            raw_status = manager.get_region_opt_status(region)
            logger.info(
                f"Current opt status for region {region} "
                f"for account id {account_id}: {raw_status}"
            )
            status = RegionOptStatus.parse(raw_status)

            if status is RegionOptStatus.DISABLED:
                logger.info(f"Opt-in initialized for {region} for account id {account_id}")
                manager.enable_region(region)
                return PairOutcome(account_id, region, False, status=raw_status)

            if status is not None and status.in_transition:
                logger.info(f"Opt-in in progress for {region} for account id {account_id}")
                return PairOutcome(account_id, region, False, status=raw_status)

            logger.info(f"Opt-in complete for {region} for account id {account_id}")
            return PairOutcome(account_id, region, True, status=raw_status)

        except (ProviderApiError, ThrottlingError) as e:
            logger.error(f"Error processing account id {account_id}: {e}")
            return PairOutcome(account_id, region, False, error=str(e))

    def process_all_accounts_regions(self, props: OptInRegionsProps) -> PollResult:
        """Run one poll cycle over every account and region.

        Args:
            props: Custom resource properties

        Returns:
            PollResult whose ``is_complete`` is the AND of all pairs
        """
        try:
            management_account_id = self.resolve_management_account_id(props)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Unable to determine management account id: {e}")
            return PollResult(error=str(e))

        pairs = self.build_pairs(props, management_account_id)
        if not pairs:
            logger.info("No account and region pairs require opt-in")
            return PollResult()

        credential_provider = self._credential_provider_factory(
            self.aws_client, props.home_region, self.settings
        )

        workers = min(self.settings.max_concurrency, len(pairs))
        logger.info(
            f"Checking {len(pairs)} account and region pairs "
            f"with {workers} workers"
        )

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(
                    self.process_account_region,
                    account_id,
                    region,
                    props,
                    credential_provider,
                )
                for account_id, region in pairs
            ]
            outcomes = [future.result() for future in futures]

        result = PollResult(outcomes=outcomes)
        logger.info(
            f"Poll cycle finished: {len(outcomes) - len(result.pending)}/"
            f"{len(outcomes)} pairs enabled, complete={result.is_complete}"
        )
        return result
