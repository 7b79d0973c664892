import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .classifier import classify_extra_feature, merge_classifications
from .models import ClassificationResult, FeatureRecord, LayoutNode
from .rules import DEFAULT_RULES
from .space_index import assign_space_type_indexes, space_type_priority
from .utils import parse_number

logger = logging.getLogger(__name__)

LAYOUT_FIELDS = [
    "adjustable_area_sq_ft",
    "area_under_air_sq_ft",
    "bathroom_renovation_date",
    "building_number",
    "cabinet_style",
    "clutter_level",
    "condition_issues",
    "countertop_material",
    "decor_elements",
    "design_style",
    "fixture_finish_quality",
    "flooring_installation_date",
    "flooring_material_type",
    "flooring_wear",
    "furnished",
    "has_windows",
    "heated_area_sq_ft",
    "installation_date",
    "is_exterior",
    "is_finished",
    "kitchen_renovation_date",
    "lighting_features",
    "livable_area_sq_ft",
    "natural_light_quality",
    "paint_condition",
    "pool_condition",
    "pool_equipment",
    "pool_installation_date",
    "pool_surface_type",
    "pool_type",
    "pool_water_quality",
    "request_identifier",
    "safety_features",
    "size_square_feet",
    "spa_installation_date",
    "spa_type",
    "space_index",
    "space_type",
    "space_type_index",
    "story_type",
    "total_area_sq_ft",
    "view_type",
    "visible_damage",
    "window_design_type",
    "window_material_type",
    "window_treatment_type",
]

# Allowed layout space_type enums
LAYOUT_SPACE_TYPES = frozenset([
    "Building", "Living Room", "Family Room", "Great Room", "Dining Room", "Office Room",
    "Conference Room", "Class Room", "Plant Floor", "Kitchen", "Breakfast Nook", "Pantry",
    "Primary Bedroom", "Secondary Bedroom", "Guest Bedroom", "Children's Bedroom", "Nursery",
    "Full Bathroom", "Three-Quarter Bathroom", "Half Bathroom / Powder Room", "En-Suite Bathroom",
    "Jack-and-Jill Bathroom", "Primary Bathroom", "Laundry Room", "Mudroom", "Closet", "Bedroom",
    "Walk-in Closet", "Mechanical Room", "Storage Room", "Server/IT Closet", "Home Office",
    "Library", "Den", "Study", "Media Room / Home Theater", "Game Room", "Home Gym", "Music Room",
    "Craft Room / Hobby Room", "Prayer Room / Meditation Room", "Safe Room / Panic Room",
    "Wine Cellar", "Bar Area", "Greenhouse", "Attached Garage", "Detached Garage", "Carport",
    "Workshop", "Storage Loft", "Porch", "Screened Porch", "Sunroom", "Deck", "Patio", "Pergola",
    "Balcony", "Terrace", "Gazebo", "Pool House", "Outdoor Kitchen", "Lobby / Entry Hall",
    "Common Room", "Utility Closet", "Elevator Lobby", "Mail Room", "Janitor's Closet",
    "Pool Area", "Indoor Pool", "Outdoor Pool", "Hot Tub / Spa Area", "Shed", "Lanai",
    "Open Porch", "Enclosed Porch", "Attic", "Enclosed Cabana", "Attached Carport",
    "Detached Carport", "Detached Utility Closet", "Jacuzzi", "Courtyard", "Open Courtyard",
    "Screen Porch (1-Story)", "Screen Enclosure (2-Story)", "Screen Enclosure (3-Story)",
    "Screen Enclosure (Custom)", "Lower Garage", "Lower Screened Porch", "Stoop", "First Floor",
    "Second Floor", "Third Floor", "Fourth Floor", "Floor", "Basement", "Sub-Basement",
    "Living Area",
])

BEDROOM_LIKE_SPACE_TYPES = frozenset([
    "Bedroom",
    "Primary Bedroom",
    "Secondary Bedroom",
    "Guest Bedroom",
    "Children's Bedroom",
    "Nursery",
    "Living Area",
])

# (keywords in property usage, replacement for bedroom-like spaces)
PROPERTY_USAGE_OVERRIDES = [
    (("school", "university", "college"), "Class Room"),
    (("office",), "Office Room"),
]


def create_layout_record(**overrides) -> Dict[str, Any]:
    """Create a layout record with every schema field set to None"""
    record = {name: None for name in LAYOUT_FIELDS}
    record.update(overrides)
    return record


def adjust_space_type(space_type, usage_type: Optional[str] = None) -> Optional[str]:
    """Swap bedroom-like spaces for the room type implied by a non-residential usage"""
    if not isinstance(space_type, str) or not space_type.strip():
        return None
    space_type = space_type.strip()
    usage = usage_type.strip().lower() if isinstance(usage_type, str) else ""
    if not usage or space_type not in BEDROOM_LIKE_SPACE_TYPES:
        return space_type
    for keywords, replacement in PROPERTY_USAGE_OVERRIDES:
        if any(k in usage for k in keywords):
            return replacement
    return space_type


def validate_space_type(space_type) -> Optional[str]:
    if not isinstance(space_type, str):
        return None
    space_type = space_type.strip()
    return space_type if space_type in LAYOUT_SPACE_TYPES else None


def _rounded(value):
    return round(value) if value is not None else None


@dataclass
class FloorArea:
    floor: int
    gross: Optional[float] = None
    heated: Optional[float] = None


@dataclass
class BuildingInfo:
    """Building facts read from the county building tables"""
    building_number: Optional[int] = None
    floor_areas: List[FloorArea] = field(default_factory=list)
    total_gross: Optional[float] = None
    total_heated: Optional[float] = None
    bedrooms: int = 0
    baths: float = 0.0
    stories: Optional[int] = None

    def resolved_floor_areas(self) -> List[FloorArea]:
        floors = [fa for fa in self.floor_areas if fa.floor is not None]
        if not floors and self.stories and self.stories > 0:
            floors = [FloorArea(floor=n) for n in range(1, self.stories + 1)]
        return sorted(floors, key=lambda fa: fa.floor)

    def resolved_totals(self):
        floors = self.resolved_floor_areas()
        gross, heated = self.total_gross, self.total_heated
        if gross is None and floors:
            gross = sum(fa.gross or 0 for fa in floors)
        if heated is None and floors:
            heated = sum(fa.heated or 0 for fa in floors)
        return gross, heated


class LayoutBuilder:
    """
    Builds the layout forest for one parcel: a "Building" root per building,
    rooms and living areas beneath it, then one node per layout fragment of
    every classified extra feature.
    """

    def __init__(self, property_usage_type: Optional[str] = None,
                 request_identifier: Optional[str] = None, rules=DEFAULT_RULES):
        self.property_usage_type = property_usage_type
        self.request_identifier = request_identifier
        self.rules = rules
        self.nodes: List[LayoutNode] = []
        self.building_ids: Dict[str, str] = {}
        # parcel-level facts from every classified extra feature
        self.facts = ClassificationResult()

    @property
    def accessory_structures(self) -> List[Dict[str, Any]]:
        return [{"type": a.type} for a in self.facts.accessory_structures]

    @property
    def utility_smart_features(self) -> List[str]:
        return self.facts.utility_smart_features

    @property
    def utility_adjustments(self) -> Dict[str, Any]:
        return self.facts.utility_adjustments

    @property
    def structure_adjustments(self) -> Dict[str, Any]:
        return self.facts.structure_adjustments

    def add_node(self, local_id: str, space_type: str, parent_local_id: Optional[str] = None,
                 **overrides) -> Optional[LayoutNode]:
        """Add one layout node; returns None when the space type is not an allowed enum"""
        space_type = validate_space_type(adjust_space_type(space_type, self.property_usage_type))
        if not space_type:
            logger.debug(f"Dropping layout {local_id}: space type not allowed")
            return None
        fields = {"space_type": space_type, "space_index": len(self.nodes) + 1,
                  "is_finished": True, "is_exterior": False,
                  "request_identifier": self.request_identifier}
        fields.update(overrides)
        node = LayoutNode(local_id=local_id, record=create_layout_record(**fields),
                          parent_local_id=parent_local_id)
        self.nodes.append(node)
        return node

    def add_building(self, building: BuildingInfo, position: Optional[int] = None) -> Optional[LayoutNode]:
        position = position or len(self.building_ids) + 1
        building_id = f"building_{position}"
        number = building.building_number if building.building_number is not None else position
        gross, heated = building.resolved_totals()

        node = self.add_node(
            building_id, "Building",
            building_number=number,
            total_area_sq_ft=_rounded(gross),
            size_square_feet=_rounded(gross),
            livable_area_sq_ft=_rounded(heated),
            area_under_air_sq_ft=_rounded(heated),
            heated_area_sq_ft=_rounded(heated),
        )
        if node is None:
            return None
        self.building_ids[str(number)] = building_id

        children = []

        def queue(local_id, space_type, **overrides):
            children.append((local_id, space_type, dict(overrides, building_number=number)))

        def heated_fields(area):
            area = round(area)
            return {"size_square_feet": area, "heated_area_sq_ft": area,
                    "livable_area_sq_ft": area, "area_under_air_sq_ft": area}

        floors = building.resolved_floor_areas()
        has_living_area = False
        for idx, fa in enumerate(floors):
            if fa.heated is None or fa.heated <= 0:
                continue
            suffix = f"_living_{idx + 1}" if len(floors) > 1 else "_living"
            queue(building_id + suffix, "Living Area", **heated_fields(fa.heated))
            has_living_area = True
        if not has_living_area and heated is not None and heated > 0:
            queue(f"{building_id}_living", "Living Area", **heated_fields(heated))

        for i in range(max(0, building.bedrooms)):
            if i == 0:
                queue(f"{building_id}_primary_bedroom", "Primary Bedroom")
            else:
                queue(f"{building_id}_bedroom_{i + 1}", "Bedroom")

        full_baths = int(building.baths)
        for i in range(full_baths):
            queue(f"{building_id}_bathroom_{i + 1}", "Primary Bathroom" if i == 0 else "Full Bathroom")
        if building.baths - full_baths >= 0.5:
            queue(f"{building_id}_half_bath", "Half Bathroom / Powder Room")

        # sorted() is stable, so equal priorities keep queue order
        for local_id, space_type, overrides in sorted(children, key=lambda c: space_type_priority(c[1])):
            self.add_node(local_id, space_type, parent_local_id=building_id, **overrides)
        return node

    def _building_for(self, feature: FeatureRecord):
        number = feature.building_number
        if number is None and feature.building_number_raw:
            number = parse_number(feature.building_number_raw)
        if number is not None and float(number).is_integer():
            number = int(number)
        parent_id = self.building_ids.get(str(number)) if number is not None else None
        if parent_id is None and len(self.building_ids) == 1:
            only_number, parent_id = next(iter(self.building_ids.items()))
            if number is None:
                number = int(only_number) if only_number.isdigit() else None
        return parent_id, number

    def add_extra_features(self, features: Iterable[FeatureRecord]) -> List[LayoutNode]:
        added = []
        for index, feature in enumerate(features):
            classification = classify_extra_feature(feature, self.rules)
            if classification is None:
                continue

            self.facts = merge_classifications([self.facts, classification])

            if not classification.layout:
                continue
            parent_id, number = self._building_for(feature)
            area = _rounded(feature.area)
            for layout_idx, layout in enumerate(classification.layout):
                if len(classification.layout) == 1:
                    local_id = f"extra_feature_layout_{index + 1}"
                else:
                    local_id = f"extra_feature_layout_{index + 1}_{layout_idx + 1}"
                node = self.add_node(
                    local_id, layout.space_type, parent_local_id=parent_id,
                    building_number=number,
                    size_square_feet=area,
                    total_area_sq_ft=area,
                    is_finished=layout.is_finished,
                    is_exterior=layout.is_exterior,
                )
                if node is not None:
                    added.append(node)
        return added

    def build(self, numbering: str = "space_type") -> List[LayoutNode]:
        assign_space_type_indexes(self.nodes, numbering=numbering)
        return self.nodes
