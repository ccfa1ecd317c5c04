"""Payment intent orchestration against an external gateway."""
