"""
Utils package - Shared utility functions.
"""

from utils.logger import setup_logging, setup_logging_from_settings
from utils.signing import canonical_json, sign_body, signature_headers, SIGNATURE_HEADER

__all__ = [
    'setup_logging',
    'setup_logging_from_settings',
    'canonical_json',
    'sign_body',
    'signature_headers',
    'SIGNATURE_HEADER',
]
