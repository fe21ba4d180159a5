"""Uninstall flow: preconditions, option selection, promotion and orchestration."""
