import os
import re
import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from ...classifier import classify_extra_feature, merge_classifications
from ...models import FeatureRecord
from ...utils import get_property_id, parse_number, write_json
from .utils import (element_details, extract_building_elements, extract_buildings,
                    extract_extra_features, extract_request_identifier)

INPUT_DIR = './input/'
OUTPUT_FILE = './owners/structure_data.json'

logger = logging.getLogger(__name__)

STRUCTURE_FIELDS = [
    "architectural_style_type",
    "attachment_type",
    "exterior_wall_material_primary",
    "exterior_wall_material_secondary",
    "finished_base_area",
    "finished_upper_story_area",
    "flooring_material_primary",
    "flooring_material_secondary",
    "foundation_type",
    "interior_wall_surface_material_primary",
    "number_of_buildings",
    "number_of_stories",
    "primary_framing_material",
    "request_identifier",
    "roof_covering_material",
    "roof_date",
    "roof_design_type",
    "roof_material_type",
]


def create_structure_record(request_identifier=None):
    structure = {name: None for name in STRUCTURE_FIELDS}
    structure["request_identifier"] = request_identifier
    return structure


def extract_structure_from_html(html: str, property_id: str,
                                features: Optional[List[FeatureRecord]] = None) -> dict:
    soup = BeautifulSoup(html, 'html.parser')
    structure = create_structure_record(extract_request_identifier(soup) or property_id)
    elements = extract_building_elements(soup)

    exterior_walls = element_details(elements, "Exterior Wall")
    if any(re.search(r'Horizontal Lap', w, re.I) for w in exterior_walls):
        structure["exterior_wall_material_primary"] = "Fiber Cement Siding"
    elif any(re.search(r'Vertical Sheet', w, re.I) for w in exterior_walls):
        structure["exterior_wall_material_primary"] = "Wood Siding"

    roof_struct = " ".join(element_details(elements, "Roof Struct"))
    if re.search(r'Gable or Hip', roof_struct, re.I):
        structure["roof_design_type"] = "Combination"
    elif re.search(r'Gable', roof_struct, re.I):
        structure["roof_design_type"] = "Gable"
    elif re.search(r'Hip', roof_struct, re.I):
        structure["roof_design_type"] = "Hip"

    if re.search(r'Asph|Comp Shng', " ".join(element_details(elements, "Roofing Cover")), re.I):
        structure["roof_covering_material"] = "Architectural Asphalt Shingle"
        structure["roof_material_type"] = "Composition"

    if re.search(r'Drywall', " ".join(element_details(elements, "Interior Wall")), re.I):
        structure["interior_wall_surface_material_primary"] = "Drywall"

    floors = []
    for detail in element_details(elements, "Int Flooring"):
        if re.search(r'Carpet', detail, re.I) and "Carpet" not in floors:
            floors.append("Carpet")
        if re.search(r'Tile', detail, re.I) and "Ceramic Tile" not in floors:
            floors.append("Ceramic Tile")
    structure["flooring_material_primary"] = floors[0] if floors else None
    structure["flooring_material_secondary"] = floors[1] if len(floors) > 1 else None

    buildings = extract_buildings(soup)
    if buildings:
        first = buildings[0]
        structure["number_of_stories"] = first.stories
        for fa in first.floor_areas:
            if fa.heated is None:
                continue
            if fa.floor == 1:
                structure["finished_base_area"] = round(fa.heated)
            else:
                structure["finished_upper_story_area"] = round(fa.heated)
    buildings_label = soup.find(id="ctl00_cphBody_lblNumberOfBuildings")
    number_of_buildings = parse_number(buildings_label.get_text()) if buildings_label else None
    structure["number_of_buildings"] = int(number_of_buildings) if number_of_buildings else (
        len(buildings) or None)

    year_built = soup.find(id=re.compile(r'lblYearBuilt$'))
    year_match = re.search(r'\d{4}', year_built.get_text()) if year_built else None
    structure["roof_date"] = year_match.group(0) if year_match else None

    building_type = soup.find(id=re.compile(r'lblBuildingType$'))
    if building_type and re.search(r'TOWNHOUSE', building_type.get_text(), re.I):
        structure["attachment_type"] = "Attached"

    if features is None:
        features = extract_extra_features(soup)
    facts = merge_classifications(classify_extra_feature(f) for f in features)
    structure.update(facts.structure_adjustments)
    return structure


def main():
    data = {}
    for filename in os.listdir(INPUT_DIR):
        if not filename.endswith('.html'):
            continue
        property_id = get_property_id(filename)
        try:
            with open(os.path.join(INPUT_DIR, filename), 'r', encoding='utf-8', errors='ignore') as f:
                html = f.read()
            data[f"property_{property_id}"] = extract_structure_from_html(html, property_id)
        except Exception as e:
            logger.error(f"❌ Error processing {filename}: {e}")
            print(f"  Error processing {filename}: {str(e)}")
    write_json(OUTPUT_FILE, data)
    logger.info(f"Wrote structure data for {len(data)} properties -> {OUTPUT_FILE}")


if __name__ == '__main__':
    main()
