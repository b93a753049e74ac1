"""Pydantic Schemas: request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (HTTP body in, JSON out)
    - Wire names are camelCase (correlationId); Python attributes stay snake_case
"""
