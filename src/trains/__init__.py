"""
Train Catalogue Module

Train search, fares per travel class, fare quotes, and creation of trains
with their derived class fares.

Key Components:
- service.py: train queries, fare resolution and fare derivation
- router.py: FastAPI endpoints for browsing trains
- schemas.py: Pydantic models for trains, fares and quotes
"""
