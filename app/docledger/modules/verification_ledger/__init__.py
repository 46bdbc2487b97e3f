"""
Verification Ledger module.

- Authorized verifiers attest a status for a registered document
- Each verifier attests at most once per document, whatever status it picks
- The document status is the status requested by the latest accepted attestation
"""
