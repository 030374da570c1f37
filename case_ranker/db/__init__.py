"""
PostgreSQL access for cases, reactions, and preferences.
"""
