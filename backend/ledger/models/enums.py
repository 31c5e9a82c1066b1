"""
User roles enumeration.

Defines the role types carried in access tokens issued to POS staff.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.
    
    Roles:
        OWNER: Business owner, may run ledger repairs
        MANAGER: Store manager, may post manual entries and run repairs
        CASHIER: Till operator, records sales and reads reports
    """
    OWNER = "OWNER"
    MANAGER = "MANAGER"
    CASHIER = "CASHIER"
