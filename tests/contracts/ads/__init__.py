"""
Ads Service Contract Module

This module contains:
- data_contract.py: test data factories built on the service's pydantic models
"""
