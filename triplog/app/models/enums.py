"""
Enumerations shared by the trip log tables.

StopType is the tagged stop kind; it knows which members are pinned to the
ends of a trip so the boundary rules live in one place.
"""

import enum


class StopType(str, enum.Enum):
    """
    Stop type enumeration.
    
    Types:
        EMPTY_START: Driving empty to the first pickup (always first)
        PICKUP: Load pickup
        STOP: Intermediate stop (fuel, scale, rest)
        TERMINAL: Terminal / yard visit
        DELIVERY: Load delivery
        REPOSITION: Driving empty after the last delivery (always last)
    """
    EMPTY_START = "empty_start"
    PICKUP = "pickup"
    STOP = "stop"
    TERMINAL = "terminal"
    DELIVERY = "delivery"
    REPOSITION = "reposition"

    @property
    def pinned_first(self) -> bool:
        return self is StopType.EMPTY_START

    @property
    def pinned_last(self) -> bool:
        return self is StopType.REPOSITION

    @property
    def is_boundary(self) -> bool:
        """True for the two types that can never change position."""
        return self.pinned_first or self.pinned_last


class StopStatus(str, enum.Enum):
    """Stop status enumeration."""
    PENDING = "pending"  # Not yet visited
    COMPLETE = "complete"  # Driver marked the stop done


class TenantRole(str, enum.Enum):
    """Role of a user inside a tenant (teams of 1-2 drivers)."""
    OWNER = "owner"
    DRIVER = "driver"


class CountryOfOperation(str, enum.Enum):
    """Where the tenant operates; CA and BOTH show the Net/GST breakdown."""
    US = "US"
    CA = "CA"
    BOTH = "BOTH"
