"""
Shared utilities: command execution, logging setup and run-once state.
"""
