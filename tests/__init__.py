"""
Test suite for notequill.

This module contains all tests for the notequill package.
"""
