"""AWS Opt-in Regions Automation - Main Package.

This package provides the CloudFormation custom resource handlers that
enable opt-in AWS regions across the accounts of a landing zone.
"""

__version__ = "1.0.0"
__author__ = "Landing Zone Automation Team"
