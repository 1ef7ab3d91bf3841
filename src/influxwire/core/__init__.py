"""
Core Module
===========

Configuration, exceptions and logging shared by the whole package.
"""
