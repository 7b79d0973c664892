import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class LayoutDescriptor:
    """Layout fragment produced by a rule"""
    space_type: str
    is_exterior: bool = False
    is_finished: bool = False


@dataclass(frozen=True)
class AccessoryDescriptor:
    """Accessory structure fragment produced by a rule"""
    type: str


@dataclass(frozen=True)
class ClassificationRule:
    """One entry of the ordered rule table.

    The rule matches a feature when any matcher finds the upper-cased code or
    the upper-cased description. Adjustment maps are read-only views.
    """
    matchers: Tuple[re.Pattern, ...]
    layout: Optional[LayoutDescriptor] = None
    accessory: Optional[AccessoryDescriptor] = None
    utility_smart_feature: Optional[str] = None
    utility_adjustments: Optional[Mapping[str, Any]] = None
    structure_adjustments: Optional[Mapping[str, Any]] = None

    def __post_init__(self):
        if not self.matchers:
            raise ValueError("ClassificationRule needs at least one matcher")
        object.__setattr__(self, "matchers", tuple(self.matchers))
        for name in ("utility_adjustments", "structure_adjustments"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def matches(self, code: str, description: str) -> bool:
        return any(
            (code and regex.search(code)) or (description and regex.search(description))
            for regex in self.matchers
        )


@dataclass
class FeatureRecord:
    """One row of a county "extra features" table"""
    code: str = ""
    description: str = ""
    building_number: Optional[int] = None
    length: Optional[float] = None
    width: Optional[float] = None
    total_units: Optional[float] = None
    building_number_raw: Optional[str] = None

    @property
    def area(self) -> Optional[float]:
        if self.total_units is not None and self.total_units > 0:
            return self.total_units
        if (self.length is not None and self.length > 0
                and self.width is not None and self.width > 0):
            return self.length * self.width
        return None


@dataclass
class ClassificationResult:
    layout: List[LayoutDescriptor] = field(default_factory=list)
    accessory_structures: List[AccessoryDescriptor] = field(default_factory=list)
    utility_smart_features: List[str] = field(default_factory=list)
    utility_adjustments: Dict[str, Any] = field(default_factory=dict)
    structure_adjustments: Dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.layout or self.accessory_structures or self.utility_smart_features
                    or self.utility_adjustments or self.structure_adjustments)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "layout": [
                {"spaceType": l.space_type, "isExterior": l.is_exterior, "isFinished": l.is_finished}
                for l in self.layout
            ],
            "accessoryStructures": [{"type": a.type} for a in self.accessory_structures],
            "utilitySmartFeatures": list(self.utility_smart_features),
            "utilityAdjustments": dict(self.utility_adjustments),
            "structureAdjustments": dict(self.structure_adjustments),
        }


@dataclass
class LayoutNode:
    """A layout record plus the ids wiring it into the parcel forest"""
    local_id: str
    record: Dict[str, Any]
    parent_local_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {"local_id": self.local_id, "record": self.record}
        if self.parent_local_id:
            out["parent_local_id"] = self.parent_local_id
        return out
