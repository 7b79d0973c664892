"""
test_duval_extractors.py
========================
Tests for the Duval County page extractors against a saved parcel page.
"""

import os
import tempfile
import unittest

from bs4 import BeautifulSoup

from feature_layout.counties.duval.layout_extractor import (build_layouts_from_html,
                                                            extract_layouts_from_html,
                                                            load_property_usage_type)
from feature_layout.counties.duval.structure_extractor import extract_structure_from_html
from feature_layout.counties.duval.utility_extractor import extract_utility_from_html
from feature_layout.counties.duval.utils import (extract_buildings, extract_extra_features,
                                                 extract_request_identifier, read_features_csv)
from feature_layout.models import FeatureRecord
from feature_layout.utils import write_json

FIXTURE = os.path.join(os.path.dirname(__file__), "fixtures", "duval_parcel.html")


def load_fixture():
    with open(FIXTURE, "r", encoding="utf-8") as f:
        return f.read()


class TestPageParsing(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.soup = BeautifulSoup(load_fixture(), "html.parser")

    def test_request_identifier(self):
        self.assertEqual(extract_request_identifier(self.soup), "002060-8295")

    def test_extra_features(self):
        features = extract_extra_features(self.soup)
        self.assertEqual([f.code for f in features], ["POLR1", "FPPR1", "SOLR1", "ZZZ99", "BRCK"])
        pool = features[0]
        self.assertEqual(pool.description, "Pool Residential")
        self.assertEqual(pool.building_number, 1)
        self.assertEqual(pool.area, 450)

    def test_buildings(self):
        buildings = extract_buildings(self.soup)
        self.assertEqual(len(buildings), 1)
        building = buildings[0]
        self.assertEqual(building.building_number, 1)
        self.assertEqual([(fa.floor, fa.heated) for fa in building.floor_areas], [(1, 596), (2, 698)])
        self.assertEqual(building.total_gross, 1631)
        self.assertEqual(building.total_heated, 1294)
        self.assertEqual(building.bedrooms, 2)
        self.assertEqual(building.baths, 2.5)
        self.assertEqual(building.stories, 2)

    def test_overlong_attribute_cell_is_ignored(self):
        html = load_fixture().replace('<td class="col_code">2.000</td>',
                                      f'<td class="col_code">{"9" * 400}</td>', 1)
        building = extract_buildings(BeautifulSoup(html, "html.parser"))[0]
        self.assertEqual(building.bedrooms, 0)
        self.assertEqual(building.baths, 2.5)


class TestLayoutExtraction(unittest.TestCase):

    def setUp(self):
        self.builder = build_layouts_from_html(load_fixture(), "0020608295")
        self.nodes = {n.local_id: n for n in self.builder.nodes}

    def test_node_order(self):
        self.assertEqual([n.local_id for n in self.builder.nodes], [
            "building_1",
            "building_1_primary_bedroom",
            "building_1_bedroom_2",
            "building_1_bathroom_1",
            "building_1_bathroom_2",
            "building_1_half_bath",
            "building_1_living_1",
            "building_1_living_2",
            "extra_feature_layout_1",
        ])

    def test_space_type_indexes(self):
        index = lambda local_id: self.nodes[local_id].record["space_type_index"]
        self.assertEqual(index("building_1"), "1")
        self.assertEqual(index("building_1_primary_bedroom"), "1.1")
        self.assertEqual(index("building_1_bathroom_2"), "1.1")
        self.assertEqual(index("building_1_living_1"), "1.1")
        self.assertEqual(index("building_1_living_2"), "1.2")
        self.assertEqual(index("extra_feature_layout_1"), "1.1")

    def test_pool_layout(self):
        pool = self.nodes["extra_feature_layout_1"]
        self.assertEqual(pool.parent_local_id, "building_1")
        self.assertEqual(pool.record["space_type"], "Outdoor Pool")
        self.assertEqual(pool.record["size_square_feet"], 450)
        self.assertTrue(pool.record["is_exterior"])
        self.assertFalse(pool.record["is_finished"])
        self.assertEqual(pool.record["request_identifier"], "002060-8295")

    def test_building_areas(self):
        record = self.nodes["building_1"].record
        self.assertEqual(record["total_area_sq_ft"], 1631)
        self.assertEqual(record["heated_area_sq_ft"], 1294)

    def test_sibling_numbering(self):
        builder = build_layouts_from_html(load_fixture(), "0020608295", numbering="sibling")
        nodes = {n.local_id: n for n in builder.nodes}
        self.assertEqual(nodes["building_1_primary_bedroom"].record["space_type_index"], "1.1")
        self.assertEqual(nodes["building_1_living_2"].record["space_type_index"], "1.7")
        self.assertEqual(nodes["extra_feature_layout_1"].record["space_type_index"], "1.8")

    def test_payload_shape(self):
        payload = extract_layouts_from_html(load_fixture(), "0020608295")
        first = payload["layouts"][0]
        self.assertEqual(first["local_id"], "building_1")
        self.assertNotIn("parent_local_id", first)
        self.assertEqual(payload["layouts"][1]["parent_local_id"], "building_1")

    def test_features_override_html_table(self):
        builder = build_layouts_from_html(load_fixture(), "0020608295",
                                          features=[FeatureRecord("GZ1", "Gazebo", building_number=1)])
        self.assertEqual(builder.nodes[-1].record["space_type"], "Gazebo")

    def test_office_usage(self):
        builder = build_layouts_from_html(load_fixture(), "0020608295", property_usage_type="Office")
        types = {n.record["space_type"] for n in builder.nodes}
        self.assertNotIn("Primary Bedroom", types)
        self.assertIn("Office Room", types)


class TestUtilityExtraction(unittest.TestCase):

    def test_utility_record(self):
        utility = extract_utility_from_html(load_fixture(), "0020608295")
        self.assertEqual(utility["request_identifier"], "002060-8295")
        self.assertEqual(utility["heating_system_type"], "Central")
        self.assertEqual(utility["heating_fuel_type"], "Electric")
        self.assertEqual(utility["cooling_system_type"], "CentralAir")
        self.assertTrue(utility["hvac_condensing_unit_present"])
        self.assertEqual(utility["smart_home_features"], ["Fireplace"])
        self.assertTrue(utility["solar_panel_present"])

    def test_no_features(self):
        utility = extract_utility_from_html(load_fixture(), "0020608295", features=[])
        self.assertIsNone(utility["smart_home_features"])
        self.assertFalse(utility["solar_panel_present"])


class TestStructureExtraction(unittest.TestCase):

    def setUp(self):
        self.structure = extract_structure_from_html(load_fixture(), "0020608295")

    def test_brick_feature_overrides_wall_element(self):
        self.assertEqual(self.structure["exterior_wall_material_primary"], "Brick")

    def test_wall_element_without_features(self):
        structure = extract_structure_from_html(load_fixture(), "0020608295", features=[])
        self.assertEqual(structure["exterior_wall_material_primary"], "Fiber Cement Siding")

    def test_building_elements(self):
        self.assertEqual(self.structure["roof_design_type"], "Combination")
        self.assertEqual(self.structure["roof_covering_material"], "Architectural Asphalt Shingle")
        self.assertEqual(self.structure["interior_wall_surface_material_primary"], "Drywall")
        self.assertEqual(self.structure["flooring_material_primary"], "Carpet")
        self.assertEqual(self.structure["flooring_material_secondary"], "Ceramic Tile")

    def test_areas_and_counts(self):
        self.assertEqual(self.structure["number_of_stories"], 2)
        self.assertEqual(self.structure["finished_base_area"], 596)
        self.assertEqual(self.structure["finished_upper_story_area"], 698)
        self.assertEqual(self.structure["number_of_buildings"], 1)
        self.assertEqual(self.structure["roof_date"], "2023")
        self.assertEqual(self.structure["attachment_type"], "Attached")


class TestFileInputs(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def test_read_features_csv(self):
        path = os.path.join(self.tmp.name, "features.csv")
        with open(path, "w", encoding="utf-8") as f:
            f.write("code,description,building,length,width,units\n")
            f.write("POLR1,Pool Residential,1,15,30,\n")
            f.write("FPPR1,,,,,1\n")
        features = read_features_csv(path)
        self.assertEqual(len(features), 2)
        self.assertEqual(features[0].building_number, 1)
        self.assertEqual(features[0].area, 450)
        self.assertEqual(features[1].description, "")
        self.assertIsNone(features[1].building_number)

    def test_load_property_usage_type(self):
        path = os.path.join(self.tmp.name, "property.json")
        write_json(path, {"property_usage_type": " Office "})
        self.assertEqual(load_property_usage_type(path), "Office")

    def test_missing_property_file(self):
        self.assertIsNone(load_property_usage_type(os.path.join(self.tmp.name, "nope.json")))


if __name__ == "__main__":
    unittest.main()
