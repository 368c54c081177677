"""Region opt-in status checks, enablement and the poll cycle."""
