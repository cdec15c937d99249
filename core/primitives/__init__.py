"""
Storefront Core Primitives — Shared Building Blocks
=====================================================
Pure Python (no Django dependency), immutable, deterministic.

Primitives:
    product    — Catalog snapshot used by pricing and stock
    inventory  — Stock movement record (reserve/restore/adjust)
    workflow   — Generic state machine schema + transition record
"""
