"""Lambda entry points for the opt-in regions custom resource.

The CloudFormation provider framework invokes ``on_event`` (or
``token_preferences``) once per lifecycle event and then re-invokes
``is_complete`` on a fixed interval until it reports completion.
"""
