"""
Core domain modules: scoring, store, sessions and reports.
"""
