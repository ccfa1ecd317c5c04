"""Enrollment-based access control for protected course content."""
