"""Centralized AWS client management with session handling.

This module provides the base session used by the handlers. Inside Lambda
it resolves the execution role credentials, from an operator workstation
it can use a named profile.
"""

from typing import Dict, Optional
import threading

import boto3
from botocore.exceptions import (
    NoCredentialsError,
    ClientError,
    ProfileNotFound,
)


class AWSClientManager:
    """Centralized AWS client management with session handling.

    Clients are cached per service and region. Creation is guarded by a
    lock because boto3 sessions are not safe to share across threads,
    while the clients they create are.
    """

    def __init__(self, profile_name: Optional[str] = None,
                 region_name: Optional[str] = None,
                 validate_credentials: bool = True) -> None:
        """Initialize AWS client manager.

        Args:
            profile_name: Optional AWS profile name for credentials
            region_name: Optional region overriding the session default
            validate_credentials: Call STS once to check credentials

        Raises:
            NoCredentialsError: When AWS credentials are not available
            ProfileNotFound: When specified profile doesn't exist
        """
        self._session: Optional[boto3.Session] = None
        self._clients: Dict[str, boto3.client] = {}
        self._profile_name = profile_name
        self._region_name = region_name
        self._account_id: Optional[str] = None
        self._lock = threading.Lock()
        if validate_credentials:
            self._validate_credentials()

    def _validate_credentials(self) -> None:
        """Validate AWS credentials are available and working.

        Raises:
            NoCredentialsError: When AWS credentials are not available
            ProfileNotFound: When specified profile doesn't exist
        """
        try:
            self.get_account_id()
        except NoCredentialsError:
            raise NoCredentialsError()
        except ProfileNotFound:
            raise ProfileNotFound(profile=self._profile_name)
        except ClientError as e:
            if e.response["Error"]["Code"] in (
                "InvalidClientTokenId",
                "ExpiredToken",
            ):
                raise NoCredentialsError(
                    "AWS credentials are invalid or expired. "
                    "Please update your credentials."
                )
            raise

    def _get_session(self) -> boto3.Session:
        """Get or create boto3 session.

        Returns:
            Configured boto3 session
        """
        if self._session is None:
            kwargs = {}
            if self._profile_name:
                kwargs["profile_name"] = self._profile_name
            if self._region_name:
                kwargs["region_name"] = self._region_name
            self._session = boto3.Session(**kwargs)
        return self._session

    def get_client(self, service_name: str,
                   region_name: Optional[str] = None) -> boto3.client:
        """Get AWS service client for specified region.

        Args:
            service_name: AWS service name (e.g., 'sts', 'account')
            region_name: AWS region name, defaults to the current region

        Returns:
            Configured boto3 client for the service and region
        """
        region_name = region_name or self.get_current_region()
        client_key = f"{service_name}_{region_name}"

        with self._lock:
            if client_key not in self._clients:
                session = self._get_session()
                self._clients[client_key] = session.client(
                    service_name, region_name=region_name
                )
            return self._clients[client_key]

    def get_current_region(self) -> str:
        """Get current AWS region from session.

        Returns:
            Current AWS region name
        """
        session = self._get_session()
        return session.region_name or "us-east-1"

    def get_account_id(self) -> str:
        """Get the account ID the base credentials belong to.

        Returns:
            Current AWS account ID

        Raises:
            ClientError: When unable to get account information
        """
        if self._account_id is None:
            sts_client = self.get_client("sts", self.get_current_region())
            response = sts_client.get_caller_identity()
            self._account_id = response["Account"]
        return self._account_id

    def clear_cache(self) -> None:
        """Clear cached clients to force recreation."""
        with self._lock:
            self._clients.clear()
