"""HTTP API for the SSO broker."""
