"""
test_classifier.py
==================
Unit tests for extra-feature classification: null results, additive
accumulation, adjustment overrides and case handling.
"""

import unittest
from types import MappingProxyType

from feature_layout.classifier import (classify_extra_feature, classify_extra_features,
                                       merge_classifications)
from feature_layout.models import AccessoryDescriptor, FeatureRecord, LayoutDescriptor
from feature_layout.rules import RuleTableBuilder


def feature(code="", description=""):
    return FeatureRecord(code=code, description=description)


# ─────────────────────────────────────────────────────────────────────────────
# Blank and unmapped features
# ─────────────────────────────────────────────────────────────────────────────

class TestNoMatch(unittest.TestCase):

    def test_unmapped_code_returns_none(self):
        self.assertIsNone(classify_extra_feature(feature("ZZZZ999")))

    def test_blank_feature_returns_none(self):
        self.assertIsNone(classify_extra_feature(feature("  ", "")))

    def test_none_feature_returns_none(self):
        self.assertIsNone(classify_extra_feature(None))

    def test_mapping_input(self):
        result = classify_extra_feature({"code": "POL", "description": None})
        self.assertEqual(result.layout[0].space_type, "Outdoor Pool")

    def test_read_only_mapping_input(self):
        result = classify_extra_feature(MappingProxyType({"code": "pol", "description": "Pool"}))
        self.assertEqual(result.layout[0].space_type, "Outdoor Pool")


# ─────────────────────────────────────────────────────────────────────────────
# Default table
# ─────────────────────────────────────────────────────────────────────────────

class TestDefaultRules(unittest.TestCase):

    def test_pool_code(self):
        result = classify_extra_feature(feature("POLR1", "Pool Residential"))
        self.assertEqual(result.layout, [LayoutDescriptor("Outdoor Pool", True, False)])
        self.assertEqual(result.accessory_structures, [AccessoryDescriptor("Pool")])
        self.assertEqual(result.utility_smart_features, [])

    def test_description_only_match(self):
        result = classify_extra_feature(feature("", "screened porch"))
        self.assertEqual([l.space_type for l in result.layout], ["Screened Porch"])

    def test_spa_needs_hot_tub_context(self):
        result = classify_extra_feature(feature("", "SPA WITH HOT TUB"))
        self.assertIn("Hot Tub / Spa Area", [l.space_type for l in result.layout])

    def test_fence_prefix_is_not_freight_elevator(self):
        result = classify_extra_feature(feature("FENCE", "Wood fence"))
        self.assertEqual(result.accessory_structures, [AccessoryDescriptor("Fence")])
        self.assertNotIn("Freight Elevator", result.utility_smart_features)

    def test_smart_feature(self):
        result = classify_extra_feature(feature("FPPR1", "Fireplace Prefab"))
        self.assertEqual(result.utility_smart_features, ["Fireplace"])
        self.assertEqual(result.layout, [])

    def test_solar_utility_adjustment(self):
        result = classify_extra_feature(feature("SOLR1"))
        self.assertEqual(result.utility_adjustments, {"solarPanelPresent": True})

    def test_brick_structure_adjustment(self):
        result = classify_extra_feature(feature("BRCK"))
        self.assertEqual(result.structure_adjustments, {"exterior_wall_material_primary": "Brick"})

    def test_pattern_and_exact_code_both_apply(self):
        # "CP" hits the ^CP pattern rule and the carport exact-code rule
        result = classify_extra_feature(feature("CP"))
        self.assertEqual([l.space_type for l in result.layout], ["Detached Carport", "Detached Carport"])
        self.assertEqual(len(result.accessory_structures), 2)

    def test_upper_story_codes(self):
        self.assertIn("Second Floor", [l.space_type for l in classify_extra_feature(feature("FUA")).layout])
        self.assertIn("Fourth Floor", [l.space_type for l in classify_extra_feature(feature("FUC")).layout])
        self.assertIn("Floor", [l.space_type for l in classify_extra_feature(feature("FUT")).layout])

    def test_exact_code_case_insensitive(self):
        self.assertEqual(classify_extra_feature(feature("pol")), classify_extra_feature(feature("POL")))
        self.assertEqual(classify_extra_feature(feature(" kta ")), classify_extra_feature(feature("KTA")))

    def test_deterministic(self):
        first = classify_extra_feature(feature("LITC1", "Light pole"))
        second = classify_extra_feature(feature("LITC1", "Light pole"))
        self.assertEqual(first.to_dict(), second.to_dict())


# ─────────────────────────────────────────────────────────────────────────────
# Accumulation semantics on custom tables
# ─────────────────────────────────────────────────────────────────────────────

class TestAccumulation(unittest.TestCase):

    def setUp(self):
        builder = RuleTableBuilder()
        builder.add_pattern_rule([r"^ABC"], layout={"space_type": "Deck", "is_exterior": True},
                                 utility_smart_feature="Elevator",
                                 structure_adjustments={"roof_design_type": "Gable", "foundation_type": "Slab"})
        builder.add_exact_code_rule(["ABC1"], accessory={"type": "Shed"},
                                    utility_smart_feature="Elevator",
                                    structure_adjustments={"roof_design_type": "Hip"})
        builder.add_pattern_rule([r"NEVER"], utility_smart_feature="Sauna")
        self.rules = builder.build()

    def test_lists_are_additive(self):
        result = classify_extra_feature(feature("ABC1"), self.rules)
        self.assertEqual(result.layout, [LayoutDescriptor("Deck", True, False)])
        self.assertEqual(result.accessory_structures, [AccessoryDescriptor("Shed")])

    def test_smart_features_deduplicated(self):
        result = classify_extra_feature(feature("ABC1"), self.rules)
        self.assertEqual(result.utility_smart_features, ["Elevator"])

    def test_later_rule_overrides_same_key(self):
        result = classify_extra_feature(feature("ABC1"), self.rules)
        self.assertEqual(result.structure_adjustments, {"roof_design_type": "Hip", "foundation_type": "Slab"})

    def test_only_first_rule(self):
        result = classify_extra_feature(feature("ABC2"), self.rules)
        self.assertEqual(result.structure_adjustments["roof_design_type"], "Gable")
        self.assertEqual(result.accessory_structures, [])

    def test_description_matches_independently(self):
        result = classify_extra_feature(feature("XYZ", "never seen"), self.rules)
        self.assertEqual(result.utility_smart_features, ["Sauna"])

    def test_classify_many_skips_unmatched(self):
        matched = classify_extra_features([feature("ABC1"), feature("QQQ")], self.rules)
        self.assertEqual(len(matched), 1)
        self.assertEqual(matched[0][0].code, "ABC1")


class TestMerge(unittest.TestCase):

    def test_merge_keeps_rules(self):
        merged = merge_classifications([
            classify_extra_feature(feature("FPPR1")),
            None,
            classify_extra_feature(feature("FP2")),
            classify_extra_feature(feature("ELEV")),
        ])
        self.assertEqual(merged.utility_smart_features, ["Fireplace", "Elevator"])


if __name__ == "__main__":
    unittest.main()
