"""Dashboard API endpoint modules (internal)."""
