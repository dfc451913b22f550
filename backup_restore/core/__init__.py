"""
Core import logic: error kinds, models, identity, shapes and normalizers.
"""
