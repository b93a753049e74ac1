"""Infrastructure Layer: concrete collaborators the core consumes through Protocols.

Invariants:
    - Infrastructure implements core Protocols; core never imports infrastructure
    - SQLAlchemy exceptions stay here: callers see CommitStatus or DatabaseError
"""
