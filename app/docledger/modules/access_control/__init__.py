"""
Access Control module.

- One owner, fixed when the ledger is initialized
- The owner is the only identity allowed to add or remove verifiers
- The authorized-verifier set starts as {owner}
"""
