"""Authentication and authorization.

Learn: Three pieces, leaf-first:
1. password — bcrypt hashing and verification
2. validators — email and password-strength rules
3. jwt + dependencies — the session token and the per-request identity
   resolver that turns it back into a fresh user record

policy holds the role/identity rules services apply to a resolved caller.
"""
