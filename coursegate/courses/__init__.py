"""Course entity as read by the enrollment engine."""
