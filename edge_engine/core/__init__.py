"""Core mathematics and configuration for the edge_engine prediction stack.

This package contains pure building blocks:

- ``odds_math``:     American/decimal/probability conversion, edge, vig, EV
- ``engine_config``: every calibration constant, versioned
- ``sim_interface``: ABC and DTOs for injectable score engines

Nothing in this package imports from ``edge_engine.services`` or
``edge_engine.models``.  All modules are side-effect-free and unit-testable
in isolation.
"""
