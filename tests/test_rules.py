"""
test_rules.py
=============
Unit tests for the exact-code matcher cache and the rule table builder.
"""

import re
import unittest

from feature_layout.models import ClassificationRule
from feature_layout.rules import (DEFAULT_RULES, FINISHED_UPPER_STORY_CODES, RuleTableBuilder,
                                  build_default_rules, clear_code_matcher_cache,
                                  create_code_matcher)


class TestCodeMatcher(unittest.TestCase):

    def setUp(self):
        clear_code_matcher_cache()

    def test_anchored_and_case_insensitive(self):
        matcher = create_code_matcher("fp2")
        self.assertTrue(matcher.search("FP2"))
        self.assertTrue(matcher.search("fp2"))
        self.assertFalse(matcher.search("FP21"))
        self.assertFalse(matcher.search("XFP2"))

    def test_cache_returns_same_object(self):
        self.assertIs(create_code_matcher(" spa "), create_code_matcher("SPA"))

    def test_blank_code(self):
        self.assertIsNone(create_code_matcher("   "))
        self.assertIsNone(create_code_matcher(None))

    def test_special_characters_are_literal(self):
        matcher = create_code_matcher("A.B")
        self.assertTrue(matcher.search("A.B"))
        self.assertFalse(matcher.search("AXB"))


class TestRuleTableBuilder(unittest.TestCase):

    def test_one_rule_for_many_codes(self):
        builder = RuleTableBuilder()
        rule = builder.add_exact_code_rule(["AAA", "", "BBB"], accessory="Dock")
        self.assertEqual(len(builder), 1)
        self.assertEqual(len(rule.matchers), 2)
        self.assertTrue(rule.matches("BBB", ""))

    def test_no_surviving_codes(self):
        builder = RuleTableBuilder()
        self.assertIsNone(builder.add_exact_code_rule([], accessory="Dock"))
        self.assertIsNone(builder.add_exact_code_rule(["", "  "], accessory="Dock"))
        self.assertEqual(len(builder), 0)

    def test_layout_without_space_type_is_dropped(self):
        builder = RuleTableBuilder()
        rule = builder.add_pattern_rule([r"X"], layout={"is_exterior": True}, accessory="Shed")
        self.assertIsNone(rule.layout)

    def test_camel_case_layout_keys(self):
        builder = RuleTableBuilder()
        rule = builder.add_pattern_rule([r"X"], layout={"spaceType": "Deck", "isExterior": True})
        self.assertEqual(rule.layout.space_type, "Deck")
        self.assertTrue(rule.layout.is_exterior)

    def test_precompiled_pattern_kept(self):
        pattern = re.compile(r"^ABC")
        rule = RuleTableBuilder().add_pattern_rule([pattern], accessory="Shed")
        self.assertIs(rule.matchers[0], pattern)

    def test_rule_needs_matchers(self):
        with self.assertRaises(ValueError):
            ClassificationRule(matchers=())

    def test_adjustments_are_read_only(self):
        rule = RuleTableBuilder().add_pattern_rule([r"X"], structure_adjustments={"a": 1})
        with self.assertRaises(TypeError):
            rule.structure_adjustments["a"] = 2


class TestDefaultTable(unittest.TestCase):

    def test_pattern_rules_come_first(self):
        self.assertEqual(DEFAULT_RULES[0].layout.space_type, "Outdoor Pool")
        self.assertEqual(DEFAULT_RULES[0].matchers[0].pattern, "^POL")

    def test_rebuild_is_equivalent(self):
        rebuilt = build_default_rules()
        self.assertEqual(len(rebuilt), len(DEFAULT_RULES))
        self.assertEqual([r.layout for r in rebuilt], [r.layout for r in DEFAULT_RULES])

    def test_upper_story_codes(self):
        self.assertEqual(FINISHED_UPPER_STORY_CODES[0], "FUA")
        self.assertEqual(FINISHED_UPPER_STORY_CODES[-1], "FUT")
        self.assertEqual(len(FINISHED_UPPER_STORY_CODES), 20)

    def test_table_is_immutable(self):
        self.assertIsInstance(DEFAULT_RULES, tuple)


if __name__ == "__main__":
    unittest.main()
