"""
Tutorium Backend — Pydantic Request/Response Schemas
======================================================

What:  The API contract. Separate from the ORM models so responses expose
       exactly the fields listed here (never `password_hash`).
How:   One module per area; shared error envelopes and brief embedded
       shapes live in `common`.
"""
