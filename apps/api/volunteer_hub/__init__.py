"""Volunteer Hub: multi-tenant nonprofit volunteer management."""
