"""Cross-account credentials for member accounts.

The handlers run in the management account and reach every member account
by assuming the management account access role (for example
``AWSControlTowerExecution``) through the home-region STS endpoint.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .aws_client import AWSClientManager
from .config import PollerSettings
from .errors import FederationError, ThrottlingError
from .throttle import throttling_backoff


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrossAccountCredentials:
    """Temporary credentials for a member account."""

    access_key_id: str
    secret_access_key: str
    session_token: str
    expiration: Optional[datetime] = None

    def __repr__(self) -> str:
        return (
            f"CrossAccountCredentials(access_key_id={self.access_key_id!r}, "
            f"expiration={self.expiration!r})"
        )


class CrossAccountCredentialProvider:
    """Obtains delegated credentials by assuming a role in a target account."""

    def __init__(self, aws_client: AWSClientManager, home_region: str,
                 settings: Optional[PollerSettings] = None) -> None:
        """Initialize credential provider.

        The STS client is created eagerly so worker threads only ever use
        the shared client, never the shared session.

        Args:
            aws_client: Client manager holding the management account session
            home_region: Region whose STS endpoint is used
            settings: Throttling and session naming settings
        """
        self.aws_client = aws_client
        self.home_region = home_region
        self.settings = settings or PollerSettings()
        self._sts_client = aws_client.get_client("sts", home_region)

    @staticmethod
    def role_arn(account_id: str, partition: str, role_name: str) -> str:
        """Build the ARN of the role to assume.

        Args:
            account_id: Target account ID
            partition: AWS partition (aws, aws-us-gov, aws-cn)
            role_name: Role name in the target account

        Returns:
            Role ARN string
        """
        return f"arn:{partition}:iam::{account_id}:role/{role_name}"

    def get_credentials(self, account_id: str, partition: str,
                        role_name: str) -> CrossAccountCredentials:
        """Assume ``role_name`` in ``account_id``.

        Args:
            account_id: Target account ID
            partition: AWS partition
            role_name: Role name in the target account

        Returns:
            Temporary credentials for the account

        Raises:
            FederationError: When the role cannot be assumed
        """
        role_arn = self.role_arn(account_id, partition, role_name)
        try:
            response = throttling_backoff(
                lambda: self._sts_client.assume_role(
                    RoleArn=role_arn,
                    RoleSessionName=self.settings.role_session_name,
                ),
                max_attempts=self.settings.max_attempts,
                base_delay=self.settings.base_delay,
                max_delay=self.settings.max_delay,
            )
        except (ClientError, BotoCoreError, ThrottlingError) as e:
            raise FederationError(
                f"Failed to assume role {role_arn}: {e}",
                account_id=account_id,
                role_name=role_name,
            ) from e

        credentials = response.get("Credentials") or {}
        try:
            return CrossAccountCredentials(
                access_key_id=credentials["AccessKeyId"],
                secret_access_key=credentials["SecretAccessKey"],
                session_token=credentials["SessionToken"],
                expiration=credentials.get("Expiration"),
            )
        except KeyError as e:
            raise FederationError(
                f"Incomplete credentials returned for {role_arn}: missing {e}",
                account_id=account_id,
                role_name=role_name,
            ) from e

    @staticmethod
    def session_for(credentials: CrossAccountCredentials,
                    region_name: str) -> boto3.Session:
        """Create a new session holding the delegated credentials.

        Args:
            credentials: Credentials returned by ``get_credentials``
            region_name: Default region of the session

        Returns:
            A session owned by the caller alone
        """
        return boto3.Session(
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key,
            aws_session_token=credentials.session_token,
            region_name=region_name,
        )
