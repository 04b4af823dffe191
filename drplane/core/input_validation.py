# drplane/core/input_validation.py
"""
Input validation for values crossing the request boundary
Region and table identifiers are validated once and then carried as typed strings
"""

import re

from drplane.core.exceptions import InvalidRegionError


class InputValidator:
    """Centralized input validation"""

    # AWS style region names: us-east-1, eu-west-2, us-gov-west-1
    PATTERNS = {
        'region': re.compile(r'^[a-z]{2}(-[a-z]+)+-\d{1,2}$'),
        'table_name': re.compile(r'^[a-zA-Z0-9_.-]{3,255}$'),
    }

    MIN_REGION_LENGTH = 9

    VALID_FAILOVER_ACTIONS = ('failover', 'failback')

    @staticmethod
    def validate_region(region: str) -> bool:
        """Validate region naming convention"""
        if not isinstance(region, str) or len(region) < InputValidator.MIN_REGION_LENGTH:
            return False
        return bool(InputValidator.PATTERNS['region'].match(region))

    @staticmethod
    def validate_table_name(table_name: str) -> bool:
        """Validate DynamoDB table naming rules"""
        if not isinstance(table_name, str):
            return False
        return bool(InputValidator.PATTERNS['table_name'].match(table_name))

    @staticmethod
    def validate_action(action: str) -> bool:
        return action in InputValidator.VALID_FAILOVER_ACTIONS


class Region(str):
    """Region identifier, validated on construction"""

    def __new__(cls, value: str):
        if not InputValidator.validate_region(value):
            raise InvalidRegionError(value)
        return super().__new__(cls, value)


class TableName(str):
    """Logical table identifier"""

    def __new__(cls, value: str):
        if not InputValidator.validate_table_name(value):
            raise ValueError(f"Invalid table name: {value!r}")
        return super().__new__(cls, value)
