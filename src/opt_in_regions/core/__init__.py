"""Core components for opt-in regions automation.

This module contains the foundational components including AWS client
management, cross-account credentials, configuration handling, throttling
and the error taxonomy shared by the handlers.
"""
