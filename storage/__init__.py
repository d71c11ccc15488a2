"""
Storage Package.

This package manages all access to the catalog database.

Modules:
- database: Engine and session management
- models/: ORM mirrors of the catalog tables
- conditions: Typed predicate tree for scoping queries
- selectors: Id selector helpers
- repositories/: Data access layer
"""
