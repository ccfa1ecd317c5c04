"""Student/teacher messaging gated on enrollment."""
