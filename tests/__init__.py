# cryptoprims Test Suite
"""
Test suite including:
- Unit tests (hashing, Merkle trees, signatures)
- Security tests (tampering, malformed input, key hygiene)
- Integration tests (audit log, crypto suites)

Run with: pytest
Coverage: pytest --cov=cryptoprims
"""
