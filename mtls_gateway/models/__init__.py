"""
Value models shared by the gateway client.
"""
from .verify import VerifyMode, VerifyPolicy

__all__ = [
    "VerifyMode",
    "VerifyPolicy",
]
