"""
SessionPulse API
================

Read-only FastAPI service over the latest session analysis.
"""
