"""Rule-based extra-feature classification and layout space indexing for county parcel data"""

from .classifier import classify_extra_feature, classify_extra_features, merge_classifications
from .layout_builder import BuildingInfo, FloorArea, LayoutBuilder, create_layout_record
from .models import (AccessoryDescriptor, ClassificationResult, ClassificationRule, FeatureRecord,
                     LayoutDescriptor, LayoutNode)
from .rules import DEFAULT_RULES, RuleTableBuilder, build_default_rules, create_code_matcher
from .space_index import CHILD_SPACE_TYPE_PRIORITY, SpaceIndexCycleError, assign_space_type_indexes

__version__ = "0.1.0"
