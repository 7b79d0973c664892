import os
import re
import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from ...classifier import classify_extra_feature, merge_classifications
from ...models import ClassificationResult, FeatureRecord
from ...utils import get_property_id, write_json
from .utils import (element_details, extract_building_elements, extract_extra_features,
                    extract_request_identifier)

INPUT_DIR = './input/'
OUTPUT_FILE = './owners/utility_data.json'

logger = logging.getLogger(__name__)

UTILITY_FIELDS = [
    "cooling_system_type",
    "electrical_panel_capacity",
    "electrical_wiring_type",
    "electrical_wiring_type_other_description",
    "heating_fuel_type",
    "heating_system_type",
    "hvac_condensing_unit_present",
    "hvac_unit_condition",
    "hvac_unit_issues",
    "plumbing_system_type",
    "plumbing_system_type_other_description",
    "public_utility_type",
    "request_identifier",
    "sewer_type",
    "smart_home_features",
    "smart_home_features_other_description",
    "solar_inverter_visible",
    "solar_panel_present",
    "solar_panel_type",
    "solar_panel_type_other_description",
    "water_source_type",
]

# classifier adjustment keys -> utility record fields
UTILITY_ADJUSTMENT_FIELDS = {
    "solarPanelPresent": "solar_panel_present",
}


def create_utility_record(request_identifier=None):
    utility = {name: None for name in UTILITY_FIELDS}
    utility["request_identifier"] = request_identifier
    utility["solar_panel_present"] = False
    utility["solar_inverter_visible"] = False
    return utility


def apply_feature_facts(utility: dict, facts: ClassificationResult) -> dict:
    """Merge classified extra-feature facts into a utility record"""
    if facts.utility_smart_features:
        existing = utility.get("smart_home_features") or []
        utility["smart_home_features"] = existing + [
            f for f in facts.utility_smart_features if f not in existing]
    for key, value in facts.utility_adjustments.items():
        utility[UTILITY_ADJUSTMENT_FIELDS.get(key, key)] = value
    return utility


def extract_utility_from_html(html: str, property_id: str,
                              features: Optional[List[FeatureRecord]] = None) -> dict:
    soup = BeautifulSoup(html, 'html.parser')
    utility = create_utility_record(extract_request_identifier(soup) or property_id)

    elements = extract_building_elements(soup)
    heating_type = " ".join(element_details(elements, "Heating Type"))
    if re.search(r'forced', heating_type, re.I) and re.search(r'duct', heating_type, re.I):
        utility["heating_system_type"] = "Central"
    elif re.search(r'heat\s*pump', heating_type, re.I):
        utility["heating_system_type"] = "HeatPump"

    heating_fuel = " ".join(element_details(elements, "Heating Fuel"))
    if re.search(r'electric', heating_fuel, re.I):
        utility["heating_fuel_type"] = "Electric"
    elif re.search(r'gas', heating_fuel, re.I):
        utility["heating_fuel_type"] = "NaturalGas"

    air_conditioning = " ".join(element_details(elements, "Air Cond"))
    if re.search(r'central', air_conditioning, re.I):
        utility["cooling_system_type"] = "CentralAir"
    elif re.search(r'window', air_conditioning, re.I):
        utility["cooling_system_type"] = "WindowAirConditioner"
    elif re.search(r'ductless|mini\s*split', air_conditioning, re.I):
        utility["cooling_system_type"] = "Ductless"
    if utility["cooling_system_type"]:
        utility["hvac_condensing_unit_present"] = utility["cooling_system_type"] == "CentralAir"

    if features is None:
        features = extract_extra_features(soup)
    facts = merge_classifications(classify_extra_feature(f) for f in features)
    return apply_feature_facts(utility, facts)


def main():
    data = {}
    for filename in os.listdir(INPUT_DIR):
        if not filename.endswith('.html'):
            continue
        property_id = get_property_id(filename)
        try:
            with open(os.path.join(INPUT_DIR, filename), 'r', encoding='utf-8', errors='ignore') as f:
                html = f.read()
            data[f"property_{property_id}"] = extract_utility_from_html(html, property_id)
        except Exception as e:
            logger.error(f"❌ Error processing {filename}: {e}")
            print(f"  Error processing {filename}: {str(e)}")
    write_json(OUTPUT_FILE, data)
    logger.info(f"Wrote utility data for {len(data)} properties -> {OUTPUT_FILE}")


if __name__ == '__main__':
    main()
