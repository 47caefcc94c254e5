"""STACKIT API clients."""
