"""
Static table of monitored districts and the request identity.

The table is loaded once at startup. DISTRICTS_FILE can point at a JSON list
of ``[id, "name"]`` pairs to use instead of the built-in one.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from pydantic import TypeAdapter

from .models import Location

logger = logging.getLogger(__name__)


USER_AGENT = "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:15.0) Gecko/20100101 Firefox/15.0.1"

# (district_id, display name), scanned in this order
MONITORED_DISTRICTS: tuple[tuple[int, str], ...] = (
    (8, "Visakhapatnam"),
    (49, "Kamrup Metropolitan"),
    (64, "Sonitpur"),
    (74, "Araria"),
    (86, "Muzaffarpur"),
    (108, "Chandigarh"),
    (109, "Raipur"),
    (142, "West Delhi"),
    (145, "East Delhi"),
    (146, "North Delhi"),
    (150, "South West Delhi"),
    (151, "North Goa"),
    (152, "South Goa"),
    (154, "Ahmedabad"),
    (187, "Panchkula"),
    (188, "Gurgaon"),
    (192, "Ambala"),
    (195, "Panipat"),
    (199, "Faridabad"),
    (202, "Rewari"),
    (212, "Sirmaur"),
    (265, "Bangalore Urban"),
    (266, "Mysore"),
    (269, "Dakshina Kannada"),
    (281, "Uttar Kannada"),
    (286, "Udupi"),
    (294, "BBMP"),
    (296, "Thiruvananthapuram"),
    (297, "Kannur"),
    (300, "Pathanamthitta"),
    (301, "Alappuzha"),
    (302, "Malappuram"),
    (303, "Thrissur"),
    (304, "Kottayam"),
    (307, "Ernakulam"),
    (308, "Palakkad"),
    (312, "Bhopal"),
    (313, "Gwalior"),
    (316, "Rewa"),
    (348, "Guna"),
    (362, "Betul"),
    (363, "Pune"),
    (365, "Nagpur"),
    (376, "Satara"),
    (390, "Jalgaon"),
    (391, "Ahmednagar"),
    (392, "Thane"),
    (393, "Raigad"),
    (395, "Mumbai"),
    (397, "Aurangabad"),
    (446, "Khurda"),
    (453, "Sundargarh"),
    (457, "Cuttack"),
    (494, "Patiala"),
    (496, "SAS Nagar"),
    (501, "Bikaner"),
    (502, "Jodhpur"),
    (505, "Jaipur I"),
    (507, "Ajmer"),
    (512, "Alwar"),
    (513, "Sikar"),
    (521, "Chittorgarh"),
    (523, "Bhilwara"),
    (530, "Churu"),
    (571, "Chennai"),
    (581, "Hyderabad"),
    (624, "Prayagraj"),
    (650, "Gautam Buddha Nagar"),
    (651, "Ghaziabad"),
    (664, "Kanpur Nagar"),
    (670, "Lucknow"),
    (676, "Meerut"),
    (679, "Muzaffarnagar"),
    (689, "Shamli"),
    (696, "Varanasi"),
    (697, "Dehradun"),
    (709, "Nainital"),
    (721, "Howrah"),
    (725, "Kolkata"),
    (773, "Jamnagar Corporation"),
    (775, "Rajkot Corporation"),
    (777, "Vadodara Corporation"),
)

_PAIRS = TypeAdapter(list[tuple[int, str]])


def load_locations(path: Optional[Path] = None) -> Sequence[Location]:
    """
    Return the monitored locations in scan order.

    Raises ValueError when the override file is malformed, empty, or lists the
    same district twice.
    """
    if path is None:
        pairs = list(MONITORED_DISTRICTS)
    else:
        pairs = _PAIRS.validate_python(json.loads(path.read_text(encoding="utf-8")))
        logger.info("Loaded %s districts from %s", len(pairs), path)

    if not pairs:
        raise ValueError("District table is empty")
    ids = [district_id for district_id, _ in pairs]
    if len(set(ids)) != len(ids):
        raise ValueError("District table contains duplicate ids")
    return tuple(Location(id=district_id, name=name) for district_id, name in pairs)


__all__ = ["USER_AGENT", "MONITORED_DISTRICTS", "load_locations"]
