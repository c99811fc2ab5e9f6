"""
Package core.tokenization - Token counting pipeline.

Modules:
- cache: TokenCache voi coalescing va fingerprint invalidation
- counter: Doc file (size limit) + estimate
- batch: Worker sizing
"""
