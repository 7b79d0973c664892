import os
import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from ...layout_builder import LayoutBuilder
from ...models import FeatureRecord
from ...utils import get_property_id, read_json, write_json
from .utils import extract_buildings, extract_extra_features, extract_request_identifier

INPUT_DIR = './input/'
OUTPUT_FILE = './owners/layout_data.json'
PROPERTY_FILE = './data/property.json'

logger = logging.getLogger(__name__)


def load_property_usage_type(path: str = PROPERTY_FILE) -> Optional[str]:
    """Read property_usage_type from an already written property.json"""
    data = read_json(path)
    usage = data.get("property_usage_type") if isinstance(data, dict) else None
    if isinstance(usage, str) and usage.strip():
        return usage.strip()
    return None


def build_layouts_from_html(html: str, property_id: str, property_usage_type: Optional[str] = None,
                            features: Optional[List[FeatureRecord]] = None,
                            numbering: str = "space_type") -> LayoutBuilder:
    """Build and index the layout forest for one Duval parcel page"""
    soup = BeautifulSoup(html, 'html.parser')
    request_id = extract_request_identifier(soup) or property_id
    builder = LayoutBuilder(property_usage_type=property_usage_type, request_identifier=request_id)

    for position, building in enumerate(extract_buildings(soup), start=1):
        builder.add_building(building, position)

    if features is None:
        features = extract_extra_features(soup)
    builder.add_extra_features(features)
    builder.build(numbering=numbering)

    logger.info(f"Built {len(builder.nodes)} layouts for {request_id} "
                f"({len(builder.building_ids)} buildings, {len(features)} extra features)")
    return builder


def extract_layouts_from_html(html: str, property_id: str, property_usage_type: Optional[str] = None,
                              features: Optional[List[FeatureRecord]] = None,
                              numbering: str = "space_type"):
    """Return the {"layouts": [...]} payload for one property"""
    builder = build_layouts_from_html(html, property_id, property_usage_type, features, numbering)
    return {"layouts": [node.to_dict() for node in builder.nodes]}


def main():
    """Process every HTML file in INPUT_DIR and write layout data"""
    if not os.path.exists(INPUT_DIR):
        print(f"Input directory {INPUT_DIR} does not exist!")
        return

    usage_type = load_property_usage_type()
    data = {}
    for filename in os.listdir(INPUT_DIR):
        if not filename.endswith('.html'):
            continue
        property_id = get_property_id(filename)
        try:
            with open(os.path.join(INPUT_DIR, filename), 'r', encoding='utf-8', errors='ignore') as f:
                html = f.read()
            data[f"property_{property_id}"] = extract_layouts_from_html(html, property_id, usage_type)
        except Exception as e:
            logger.error(f"❌ Error processing {filename}: {e}")
            print(f"  Error processing {filename}: {str(e)}")

    write_json(OUTPUT_FILE, data)
    print(f"Wrote layout data for {len(data)} properties -> {OUTPUT_FILE}")


if __name__ == '__main__':
    main()
