"""Custom resource properties for the opt-in regions resource.

CloudFormation re-supplies these on every invocation, so they are parsed
fresh each time and never stored.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import PropsValidationError


DEFAULT_PARTITION = "aws"


def _require_string(props: Mapping[str, Any], key: str) -> str:
    value = props.get(key)
    if not isinstance(value, str) or not value:
        raise PropsValidationError(f"Property '{key}' must be a non-empty string")
    return value


def _require_string_list(props: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    value = props.get(key)
    if not isinstance(value, (list, tuple)):
        raise PropsValidationError(f"Property '{key}' must be a list")
    for item in value:
        if not isinstance(item, str) or not item:
            raise PropsValidationError(
                f"Property '{key}' must only contain non-empty strings"
            )
    return tuple(value)


@dataclass(frozen=True)
class OptInRegionsProps:
    """Parameters of one opt-in regions provisioning operation."""

    account_ids: Tuple[str, ...]
    home_region: str
    enabled_regions: Tuple[str, ...]
    management_account_access_role: str
    partition: str = DEFAULT_PARTITION
    management_account_id: Optional[str] = None
    global_region: Optional[str] = None

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "OptInRegionsProps":
        """Parse the ``props`` bag of a custom resource event.

        Args:
            event: CloudFormation custom resource event

        Returns:
            Parsed properties

        Raises:
            PropsValidationError: When the event carries no usable props
        """
        resource_properties = event.get("ResourceProperties") or {}
        props = resource_properties.get("props")
        if not isinstance(props, Mapping):
            raise PropsValidationError(
                "ResourceProperties.props is missing or not an object"
            )
        return cls.from_dict(props)

    @classmethod
    def from_dict(cls, props: Mapping[str, Any]) -> "OptInRegionsProps":
        """Parse the camelCase property mapping.

        Args:
            props: Mapping with the custom resource property keys

        Returns:
            Parsed properties

        Raises:
            PropsValidationError: When a property is missing or malformed
        """
        partition = props.get("partition") or DEFAULT_PARTITION
        if not isinstance(partition, str):
            raise PropsValidationError("Property 'partition' must be a string")

        management_account_id = props.get("managementAccountId")
        if management_account_id is not None:
            management_account_id = str(management_account_id)

        global_region = props.get("globalRegion")
        if global_region is not None and not isinstance(global_region, str):
            raise PropsValidationError("Property 'globalRegion' must be a string")

        return cls(
            account_ids=_require_string_list(props, "accountIds"),
            home_region=_require_string(props, "homeRegion"),
            enabled_regions=_require_string_list(props, "enabledRegions"),
            management_account_access_role=_require_string(
                props, "managementAccountAccessRole"
            ),
            partition=partition,
            management_account_id=management_account_id or None,
            global_region=global_region or None,
        )

    @property
    def token_preferences_region(self) -> str:
        """Region used for IAM calls, falls back to the home region."""
        return self.global_region or self.home_region

    def to_dict(self) -> Dict[str, Any]:
        """Render the properties back into custom resource shape."""
        props: Dict[str, Any] = {
            "accountIds": list(self.account_ids),
            "homeRegion": self.home_region,
            "enabledRegions": list(self.enabled_regions),
            "managementAccountAccessRole": self.management_account_access_role,
            "partition": self.partition,
        }
        if self.management_account_id:
            props["managementAccountId"] = self.management_account_id
        if self.global_region:
            props["globalRegion"] = self.global_region
        return props
