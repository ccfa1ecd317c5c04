"""Enrollment state machine and endpoints."""
