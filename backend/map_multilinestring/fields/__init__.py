"""Admin field types and the registry that resolves them by component name.

Submodules:
    - base: Field base class (resolve, fill, per-context serialization).
    - map_multi_linestring: Map field editing multi-linestring geometries.
    - registry: Explicit component-name to constructor mapping.
"""
