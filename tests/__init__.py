"""
Clinic dispatch core test suite
"""
