"""
Tutorium Backend — Authentication Package
===========================================

password.py      bcrypt hashing and generated initial passwords
jwt.py           session token creation and validation (python-jose)
dependencies.py  FastAPI dependencies: current user and role checks
"""
