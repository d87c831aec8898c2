"""
Database schema, fixtures, and seeding.

The HTTP service only wires these into a request handler. This package owns:
- Table definitions for the dashboard schema
- Validated fixture data (placeholder dataset or a JSON file)
- The idempotent seeder and its CLI
"""
