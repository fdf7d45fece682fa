"""
One package per screen (catalogs, personnel, patrols, incidents, ...).

Each screen owns its models, service functions and admin routes, and reuses
the platform pieces (auth, RBAC, audit, storage, DB session, reference cache,
report generator).
"""
