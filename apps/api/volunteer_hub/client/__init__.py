"""HTTP client for the Volunteer Hub API.

Session storage, the authenticated gateway, role-aware managers, dashboard
view models, and the route guard used by the terminal UI.
"""
