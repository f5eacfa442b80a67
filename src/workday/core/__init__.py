"""Core domain: sessions, workspaces, organizations and entitlements."""
