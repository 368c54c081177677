"""Unit tests for AWS Client Manager."""

import pytest
from unittest.mock import Mock, patch
from botocore.exceptions import ClientError, NoCredentialsError, ProfileNotFound

from opt_in_regions.core.aws_client import AWSClientManager


def make_session(account_id="111111111111", region_name="us-east-1"):
    session = Mock()
    session.region_name = region_name
    sts_client = Mock()
    sts_client.get_caller_identity.return_value = {"Account": account_id}
    session.client.return_value = sts_client
    return session, sts_client


class TestAWSClientManager:
    """Test cases for AWSClientManager class."""

    @patch("opt_in_regions.core.aws_client.boto3.Session")
    def test_init_success(self, mock_session_class):
        """Test successful initialization."""
        mock_session, mock_sts_client = make_session()
        mock_session_class.return_value = mock_session

        manager = AWSClientManager()

        assert manager._profile_name is None
        mock_sts_client.get_caller_identity.assert_called_once()
        mock_session_class.assert_called_once_with()

    @patch("opt_in_regions.core.aws_client.boto3.Session")
    def test_init_with_profile_and_region(self, mock_session_class):
        """Test initialization with profile and region."""
        mock_session, _ = make_session()
        mock_session_class.return_value = mock_session

        manager = AWSClientManager(profile_name="test-profile", region_name="eu-west-1")

        assert manager._profile_name == "test-profile"
        mock_session_class.assert_called_with(
            profile_name="test-profile", region_name="eu-west-1"
        )

    @patch("opt_in_regions.core.aws_client.boto3.Session")
    def test_init_without_validation(self, mock_session_class):
        """Test that validation can be skipped inside Lambda."""
        AWSClientManager(validate_credentials=False)
        mock_session_class.assert_not_called()

    @patch("opt_in_regions.core.aws_client.boto3.Session")
    def test_init_no_credentials(self, mock_session_class):
        """Test initialization with no credentials."""
        mock_session, mock_sts_client = make_session()
        mock_sts_client.get_caller_identity.side_effect = NoCredentialsError()
        mock_session_class.return_value = mock_session

        with pytest.raises(NoCredentialsError):
            AWSClientManager()

    @patch("opt_in_regions.core.aws_client.boto3.Session")
    def test_init_expired_token(self, mock_session_class):
        """Test initialization with expired credentials."""
        mock_session, mock_sts_client = make_session()
        mock_sts_client.get_caller_identity.side_effect = ClientError(
            {"Error": {"Code": "ExpiredToken"}}, "GetCallerIdentity"
        )
        mock_session_class.return_value = mock_session

        with pytest.raises(NoCredentialsError):
            AWSClientManager()

    @patch("opt_in_regions.core.aws_client.boto3.Session")
    def test_init_other_client_error(self, mock_session_class):
        """Test other client errors propagate."""
        mock_session, mock_sts_client = make_session()
        mock_sts_client.get_caller_identity.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied"}}, "GetCallerIdentity"
        )
        mock_session_class.return_value = mock_session

        with pytest.raises(ClientError):
            AWSClientManager()

    @patch("opt_in_regions.core.aws_client.boto3.Session")
    def test_init_profile_not_found(self, mock_session_class):
        """Test initialization with invalid profile."""
        mock_session_class.side_effect = ProfileNotFound(profile="invalid")

        with pytest.raises(ProfileNotFound):
            AWSClientManager(profile_name="invalid")

    @patch("opt_in_regions.core.aws_client.boto3.Session")
    def test_get_client_caching(self, mock_session_class):
        """Test client caching functionality."""
        mock_session, _ = make_session()
        mock_session_class.return_value = mock_session
        manager = AWSClientManager(validate_credentials=False)

        client1 = manager.get_client("account", "us-east-1")
        client2 = manager.get_client("account", "us-east-1")
        manager.get_client("account", "eu-west-1")

        assert client1 is client2
        assert mock_session.client.call_count == 2

    @patch("opt_in_regions.core.aws_client.boto3.Session")
    def test_get_client_defaults_to_current_region(self, mock_session_class):
        """Test client region falls back to the session region."""
        mock_session, _ = make_session(region_name="ap-southeast-2")
        mock_session_class.return_value = mock_session
        manager = AWSClientManager(validate_credentials=False)

        manager.get_client("sts")

        mock_session.client.assert_called_once_with("sts", region_name="ap-southeast-2")

    @patch("opt_in_regions.core.aws_client.boto3.Session")
    def test_get_current_region_default(self, mock_session_class):
        """Test default region when the session has none."""
        mock_session, _ = make_session(region_name=None)
        mock_session_class.return_value = mock_session
        manager = AWSClientManager(validate_credentials=False)

        assert manager.get_current_region() == "us-east-1"

    @patch("opt_in_regions.core.aws_client.boto3.Session")
    def test_get_account_id_cached(self, mock_session_class):
        """Test account ID lookup is done once."""
        mock_session, mock_sts_client = make_session(account_id="999999999999")
        mock_session_class.return_value = mock_session
        manager = AWSClientManager()

        assert manager.get_account_id() == "999999999999"
        assert manager.get_account_id() == "999999999999"
        mock_sts_client.get_caller_identity.assert_called_once()

    @patch("opt_in_regions.core.aws_client.boto3.Session")
    def test_clear_cache(self, mock_session_class):
        """Test clearing cached clients."""
        mock_session, _ = make_session()
        mock_session_class.return_value = mock_session
        manager = AWSClientManager(validate_credentials=False)

        manager.get_client("account", "us-east-1")
        manager.clear_cache()
        manager.get_client("account", "us-east-1")

        assert mock_session.client.call_count == 2
