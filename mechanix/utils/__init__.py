"""Utility helpers"""
from .sanitize import sanitize_dict, sanitize_string

__all__ = ['sanitize_dict', 'sanitize_string']
