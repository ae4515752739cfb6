"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the hustle engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Cost basis and quantity bookkeeping
2. atomicity.py - Rejected operations leave state untouched
3. idempotency.py - Repeated calls are detected and do nothing
4. determinism.py - Same seed and clock, same game
5. canonicalization.py - Snapshot round trips
6. temporal.py - Thread ordering and offer state machine

These tests use hypothesis for property-based testing.
"""
