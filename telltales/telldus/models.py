"""
Telldus Live resource models.

Controllers, devices and sensors are all reduced to a common Entry shape
for listing.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Category(Enum):
    """Kind of Telldus Live resource."""

    CONTROLLER = "controller"
    DEVICE = "device"
    SENSOR = "sensor"


@dataclass
class Entry:
    """
    One listed Telldus Live resource.

    Attributes:
        category: Resource kind
        id: Telldus identifier
        name: Display name
        details: Comma-separated extra information (model, state, values)
    """

    category: Category
    id: str
    name: str
    details: Optional[str] = None

    def sort_key(self) -> tuple:
        return (self.category.value, self.name, self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "id": self.id,
            "name": self.name,
            "details": self.details,
        }
