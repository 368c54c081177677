"""Integration tests driving the handlers through several poll cycles.

The provider framework is simulated: onEvent is called once, then
isComplete is called repeatedly while an in-memory Account API completes
the requested opt-ins between calls.
"""

import copy

import pytest

from opt_in_regions.core.config import PollerSettings
from opt_in_regions.handlers import is_complete, on_event
from opt_in_regions.regions.poller import OptInRegionsPoller

from conftest import (
    FakeAccountApi,
    MANAGEMENT_ACCOUNT,
    MEMBER_ACCOUNT,
    OTHER_MEMBER_ACCOUNT,
    make_credential_provider,
)


def build_poller(aws_client, api, failing_accounts=()):
    provider = make_credential_provider(failing_accounts)
    return OptInRegionsPoller(
        aws_client,
        PollerSettings(max_concurrency=4),
        credential_provider_factory=lambda client, region, settings: provider,
        manager_factory=lambda session, region, settings: api.manager_for(session),
    )


def run_provider(event, poller, api, max_polls=5):
    """Run onEvent followed by isComplete until complete or out of polls."""
    response = on_event.handler(event, None)
    if response["IsComplete"]:
        return response, 0

    poll_event = copy.deepcopy(event)
    poll_event["ResourceProperties"]["props"] = response["Props"]
    for poll in range(1, max_polls + 1):
        result = is_complete.handler(poll_event, None, poller=poller)
        if result["IsComplete"]:
            return result, poll
        api.advance()
    return result, max_polls


class TestPollCycles:

    def test_example_scenario(self, props_event, mock_aws_client):
        """Management plus one member account, one opt-in region."""
        api = FakeAccountApi()
        poller = build_poller(mock_aws_client, api)

        first = is_complete.handler(props_event, None, poller=poller)
        assert first == {"IsComplete": False}
        assert api.status_calls == [(MEMBER_ACCOUNT, "ap-east-1")]
        assert api.enable_calls == [(MEMBER_ACCOUNT, "ap-east-1")]

        api.statuses[(MEMBER_ACCOUNT, "ap-east-1")] = "ENABLED"
        second = is_complete.handler(props_event, None, poller=poller)
        assert second == {"IsComplete": True}
        assert len(api.enable_calls) == 1

    def test_full_provider_lifecycle(self, props_event, mock_aws_client):
        event = copy.deepcopy(props_event)
        event["ResourceProperties"]["props"].update({
            "accountIds": [MANAGEMENT_ACCOUNT, MEMBER_ACCOUNT, OTHER_MEMBER_ACCOUNT],
            "enabledRegions": ["us-east-1", "ap-east-1", "me-central-1"],
        })
        api = FakeAccountApi({(OTHER_MEMBER_ACCOUNT, "me-central-1"): "ENABLED"})
        poller = build_poller(mock_aws_client, api)

        result, polls = run_provider(event, poller, api)

        assert result == {"IsComplete": True}
        # first poll enables, the regions finish enabling before the second
        assert polls == 2
        assert sorted(api.enable_calls) == [
            (MEMBER_ACCOUNT, "ap-east-1"),
            (MEMBER_ACCOUNT, "me-central-1"),
            (OTHER_MEMBER_ACCOUNT, "ap-east-1"),
        ]
        assert all(a != MANAGEMENT_ACCOUNT for a, _ in api.status_calls)
        assert all(r != "us-east-1" for _, r in api.status_calls)

    def test_failing_account_never_completes(self, props_event, mock_aws_client):
        api = FakeAccountApi()
        poller = build_poller(mock_aws_client, api, failing_accounts={MEMBER_ACCOUNT})

        result, polls = run_provider(props_event, poller, api, max_polls=3)

        assert result == {"IsComplete": False}
        assert polls == 3
        assert api.status_calls == []

    def test_delete_skips_polling(self, props_event, mock_aws_client):
        api = FakeAccountApi()
        poller = build_poller(mock_aws_client, api)

        result, polls = run_provider(dict(props_event, RequestType="Delete"), poller, api)

        assert result["IsComplete"] is True
        assert polls == 0
        assert api.status_calls == []

    @pytest.mark.parametrize("status", ["ENABLING", "DISABLING"])
    def test_observed_mid_transition(self, props_event, mock_aws_client, status):
        api = FakeAccountApi({(MEMBER_ACCOUNT, "ap-east-1"): status})
        poller = build_poller(mock_aws_client, api)

        assert is_complete.handler(props_event, None, poller=poller) == {"IsComplete": False}
        assert api.enable_calls == []
