"""CourseGate - enrollment and access-control engine for a course platform."""

__version__ = "0.1.0"
