"""Service modules"""
from .advisor import Advisor

__all__ = ["Advisor"]
