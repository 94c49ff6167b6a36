"""
Shared, cross-cutting code for the API.

`core/` holds the small building blocks every feature uses: the DB pool,
settings and logging setup. Feature-specific SQL and business logic stay in
the feature packages (`auth/`, `users/`).
"""
