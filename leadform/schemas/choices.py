"""Closed choice sets offered by the lead form."""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple


class City(str, Enum):
    TAMPA = "Tampa"
    ORLANDO = "Orlando"
    MIAMI = "Miami"
    FORT_LAUDERDALE = "Fort Lauderdale"


class ServiceType(str, Enum):
    CHIROPRACTIC = "Chiropractic"
    MED_SPA = "Med Spa"


class TimeSlot(str, Enum):
    NINE_AM = "9:00 AM"
    TEN_AM = "10:00 AM"
    ELEVEN_AM = "11:00 AM"
    NOON = "12:00 PM"
    ONE_PM = "1:00 PM"
    TWO_PM = "2:00 PM"
    THREE_PM = "3:00 PM"
    FOUR_PM = "4:00 PM"
    FIVE_PM = "5:00 PM"


SUB_SERVICES: Dict[ServiceType, Tuple[str, ...]] = {
    ServiceType.CHIROPRACTIC: (
        "Initial Consultation",
        "Adjustment",
        "Massage Therapy",
        "Rehabilitation",
    ),
    ServiceType.MED_SPA: (
        "Botox",
        "Fillers",
        "Laser Treatment",
        "Facials",
    ),
}


def _values(enum_cls) -> Tuple[str, ...]:
    return tuple(member.value for member in enum_cls)


CITIES = _values(City)
SERVICE_TYPES = _values(ServiceType)
TIME_SLOTS = _values(TimeSlot)


def sub_service_options(service_type: Optional[str]) -> Tuple[str, ...]:
    """Sub-services offered for a service type; empty for unknown or blank."""
    if not service_type or service_type not in SERVICE_TYPES:
        return ()
    return SUB_SERVICES[ServiceType(service_type)]


def catalog() -> Dict[str, object]:
    return {
        "cities": list(CITIES),
        "service_types": list(SERVICE_TYPES),
        "sub_services": {st.value: list(options) for st, options in SUB_SERVICES.items()},
        "time_slots": list(TIME_SLOTS),
    }
