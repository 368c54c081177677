"""Shared fixtures and fakes for opt-in regions tests."""

import threading
import time
from typing import Dict, List, Optional, Tuple
from unittest.mock import Mock

import pytest

from opt_in_regions.core.aws_client import AWSClientManager
from opt_in_regions.core.config import PollerSettings
from opt_in_regions.core.credentials import CrossAccountCredentials
from opt_in_regions.core.errors import FederationError
from opt_in_regions.core.props import OptInRegionsProps


MANAGEMENT_ACCOUNT = "111111111111"
MEMBER_ACCOUNT = "222222222222"
OTHER_MEMBER_ACCOUNT = "333333333333"


class FakeAccountApi:
    """In-memory Account API shared by every account in a test.

    Regions move DISABLED -> ENABLING when enabled and ENABLING -> ENABLED
    when ``advance`` is called, the way AWS completes an opt-in between
    two polls.
    """

    def __init__(self, statuses: Optional[Dict[Tuple[str, str], str]] = None,
                 delay: float = 0.0) -> None:
        self.statuses: Dict[Tuple[str, str], str] = dict(statuses or {})
        self.status_calls: List[Tuple[str, str]] = []
        self.enable_calls: List[Tuple[str, str]] = []
        self.errors: Dict[Tuple[str, str], Exception] = {}
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def manager_for(self, account_id: str) -> "FakeRegionManager":
        return FakeRegionManager(self, account_id)

    def advance(self) -> None:
        for key, status in self.statuses.items():
            if status == "ENABLING":
                self.statuses[key] = "ENABLED"

    def _enter(self) -> None:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)

    def _exit(self) -> None:
        with self._lock:
            self.active -= 1


class FakeRegionManager:
    """Stands in for RegionOptInManager bound to one account."""

    def __init__(self, api: FakeAccountApi, account_id: str) -> None:
        self.api = api
        self.account_id = account_id

    def get_region_opt_status(self, region: str) -> Optional[str]:
        key = (self.account_id, region)
        self.api._enter()
        try:
            if self.api.delay:
                time.sleep(self.api.delay)
            self.api.status_calls.append(key)
            if key in self.api.errors:
                raise self.api.errors[key]
            return self.api.statuses.get(key, "DISABLED")
        finally:
            self.api._exit()

    def enable_region(self, region: str) -> None:
        key = (self.account_id, region)
        self.api.enable_calls.append(key)
        self.api.statuses[key] = "ENABLING"


def make_credentials(account_id: str) -> CrossAccountCredentials:
    return CrossAccountCredentials(
        access_key_id=f"ASIA{account_id}",
        secret_access_key="secret",
        session_token="token",
    )


def make_credential_provider(failing_accounts=()) -> Mock:
    """Credential provider whose sessions are just the account ID."""
    provider = Mock()

    def get_credentials(account_id, partition, role_name):
        if account_id in failing_accounts:
            raise FederationError(
                f"Failed to assume role in {account_id}",
                account_id=account_id,
                role_name=role_name,
            )
        return make_credentials(account_id)

    provider.get_credentials.side_effect = get_credentials
    provider.session_for.side_effect = (
        lambda credentials, region: credentials.access_key_id[len("ASIA"):]
    )
    return provider


@pytest.fixture
def props():
    """Props from the canonical two-account example."""
    return OptInRegionsProps(
        account_ids=(MANAGEMENT_ACCOUNT, MEMBER_ACCOUNT),
        home_region="us-east-1",
        enabled_regions=("ap-east-1",),
        management_account_access_role="AWSControlTowerExecution",
        partition="aws",
        management_account_id=MANAGEMENT_ACCOUNT,
    )


@pytest.fixture
def props_event(props):
    """Custom resource event carrying the example props."""
    return {
        "RequestType": "Create",
        "ResourceProperties": {
            "ServiceToken": "arn:aws:lambda:us-east-1:111111111111:function:provider",
            "uuid": "5f1b0a0c-0000-4000-8000-000000000000",
            "props": props.to_dict(),
        },
    }


@pytest.fixture
def mock_aws_client():
    """Mock AWS client manager."""
    client = Mock(spec=AWSClientManager)
    client.get_current_region.return_value = "us-east-1"
    client.get_account_id.return_value = MANAGEMENT_ACCOUNT
    return client


@pytest.fixture
def fast_settings():
    """Settings with a tiny back-off so retries do not slow tests down."""
    return PollerSettings(max_concurrency=4, max_attempts=3,
                          base_delay=0.0, max_delay=0.0)


@pytest.fixture
def account_api():
    return FakeAccountApi()
