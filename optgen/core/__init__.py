"""Core components of optgen.

This package contains:
- schema: Option/Category model and document loader
- graph: Constraint graph with positive-cycle detection
- resolver: Closure and constraint validation with diagnostics
"""
