from typing import Dict, List, Protocol
from sqlalchemy.orm import Session

from buildingops.spaces import service as spaces_service
from .model import ChecklistItemTemplate


class ChecklistTemplateProvider(Protocol):
    def __call__(self, db: Session, building_id: str) -> List[ChecklistItemTemplate]:
        ...


# Monthly building checklist. Items with a space category get linked to the
# building's first registered space of that category.
BASE_CHECKLIST = [
    # Electrical Systems
    (ChecklistItemTemplate(id="elec_1", category="electrical", title="Main Electrical Room",
                           description="Check main electrical panel, connections, and safety equipment",
                           priority="high"), "electrical"),
    (ChecklistItemTemplate(id="elec_2", category="electrical", title="Emergency Lighting",
                           description="Test emergency lighting systems and backup power",
                           priority="high"), None),

    # Mechanical Systems
    (ChecklistItemTemplate(id="mech_1", category="mechanical", title="Boiler/Heating System",
                           description="Inspect boiler room, heating equipment, and safety systems",
                           priority="high"), "mechanical"),
    (ChecklistItemTemplate(id="mech_2", category="mechanical", title="HVAC Systems",
                           description="Check air handling units, filters, and temperature controls",
                           priority="medium"), None),

    # Fire Safety
    (ChecklistItemTemplate(id="fire_1", category="fire_safety", title="Fire Suppression System",
                           description="Inspect fire pump, sprinkler heads, and suppression equipment",
                           priority="critical"), "fire_safety"),
    (ChecklistItemTemplate(id="fire_2", category="fire_safety", title="Fire Extinguishers",
                           description="Check fire extinguisher locations, pressure, and accessibility",
                           priority="high"), None),
    (ChecklistItemTemplate(id="fire_3", category="fire_safety", title="Emergency Exits",
                           description="Verify emergency exit doors, signage, and egress paths",
                           priority="critical"), None),

    # Elevator Systems
    (ChecklistItemTemplate(id="elev_1", category="elevator", title="Elevator Machine Room",
                           description="Inspect elevator equipment, safety systems, and maintenance records",
                           priority="high"), "elevator"),

    # Roof and Drainage
    (ChecklistItemTemplate(id="roof_1", category="roof", title="Roof Drainage",
                           description="Check roof drains, gutters, and drainage systems",
                           priority="medium"), "roof"),
    (ChecklistItemTemplate(id="roof_2", category="roof", title="Roof Surface",
                           description="Inspect roof membrane, flashing, and structural integrity",
                           priority="medium"), None),

    # Stairwells and Egress
    (ChecklistItemTemplate(id="stair_1", category="structural", title="Main Stairwell",
                           description="Check stairwell lighting, handrails, and emergency systems",
                           priority="high"), "stairwell"),

    # Trash and Waste
    (ChecklistItemTemplate(id="trash_1", category="environmental", title="Trash Room",
                           description="Inspect waste management area, cleanliness, and pest control",
                           priority="medium"), "trash"),
]


def default_template_provider(db: Session, building_id: str) -> List[ChecklistItemTemplate]:
    spaces_by_category: Dict[str, object] = {}
    for space in spaces_service.get_spaces_for_building(db, building_id):
        if space.category and space.category not in spaces_by_category:
            spaces_by_category[space.category] = space

    checklist = []
    for template, space_category in BASE_CHECKLIST:
        item = template.model_copy()
        space = spaces_by_category.get(space_category) if space_category else None
        if space is not None:
            item.space_id = space.id
            item.space_name = space.name
        checklist.append(item)
    return checklist
