"""
account_service tests

Covers the account service package:

- credential hashing and bearer tokens (`auth.py`)
- the SQLAlchemy account store (`repository.py`)
- register / login / profile workflows (`service.py`)
- the FastAPI application (`main.py`, `routes/`)
"""
