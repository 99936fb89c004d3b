"""
Services module for catalogue and address handling.
"""

from pat.services.catalogue import build_record, filter_records, find_duplicate
from pat.services.address import parse_address, address_key

__all__ = ["build_record", "filter_records", "find_duplicate", "parse_address", "address_key"]
