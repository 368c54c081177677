"""Regions that must be explicitly enabled before an account can use them.

Regions launched after March 2019 are disabled by default. Every other
region is enabled for all accounts and cannot be opted in or out.
"""

from typing import Iterable, List


OPT_IN_REGIONS = frozenset([
    "af-south-1",
    "ap-east-1",
    "ap-east-2",
    "ap-south-2",
    "ap-southeast-3",
    "ap-southeast-4",
    "ap-southeast-5",
    "ap-southeast-6",
    "ap-southeast-7",
    "ca-west-1",
    "eu-central-2",
    "eu-south-1",
    "eu-south-2",
    "il-central-1",
    "me-central-1",
    "me-south-1",
    "mx-central-1",
])


def is_opt_in_region(region: str) -> bool:
    """Check whether a region requires explicit opt-in.

    Args:
        region: Region identifier (e.g., 'ap-east-1')

    Returns:
        True if the region is eligible for explicit opt-in
    """
    return region in OPT_IN_REGIONS


def filter_opt_in_regions(regions: Iterable[str]) -> List[str]:
    """Keep only opt-in regions, preserving order and dropping duplicates.

    Args:
        regions: Requested region identifiers

    Returns:
        Ordered list of opt-in regions
    """
    seen = set()
    result = []
    for region in regions:
        if is_opt_in_region(region) and region not in seen:
            seen.add(region)
            result.append(region)
    return result
