import logging
import re
from typing import Dict, List, Optional

import pandas as pd
from bs4 import BeautifulSoup

from ...layout_builder import BuildingInfo, FloorArea
from ...models import FeatureRecord
from ...utils import parse_number

logger = logging.getLogger(__name__)

EXTRA_FEATURES_TABLE_ID = "ctl00_cphBody_gridExtraFeatures"


def _text(tag) -> str:
    return tag.get_text(strip=True) if tag is not None else ""


def _as_int(value) -> Optional[int]:
    if value is None or not float(value).is_integer():
        return None
    return int(value)


def extract_request_identifier(soup: BeautifulSoup) -> Optional[str]:
    """Return the RE # shown in the property detail panel"""
    text = _text(soup.find(id="ctl00_cphBody_lblRealEstateNumber"))
    return text or None


def extract_extra_features(soup: BeautifulSoup) -> List[FeatureRecord]:
    """
    Read the "Extra Features" grid.

    Columns: #, code, description, building, length, width, total units.
    The header row and rows with fewer than three cells are skipped.
    """
    table = soup.find(id=EXTRA_FEATURES_TABLE_ID)
    if table is None:
        return []

    features = []
    for row in table.find_all('tr')[1:]:
        cells = row.find_all('td')
        if len(cells) < 3:
            continue
        cell = lambda i: cells[i].get_text(strip=True) if len(cells) > i else ""
        building_raw = cell(3)
        features.append(FeatureRecord(
            code=cell(1),
            description=cell(2),
            building_number=_as_int(parse_number(building_raw)),
            building_number_raw=building_raw or None,
            length=parse_number(cell(4)),
            width=parse_number(cell(5)),
            total_units=parse_number(cell(6)),
        ))
    return features


def _building_number(section, position: int) -> int:
    label = section.find_previous('span', id=re.compile(r'lblBuildingNumber$'))
    match = re.search(r'(\d+)', _text(label))
    return int(match.group(1)) if match else position


def extract_buildings(soup: BeautifulSoup) -> List[BuildingInfo]:
    """Read area, bedroom, bath and story facts for every building section"""
    buildings = []
    for position, section in enumerate(soup.select("#details_buildings .actualBuildingData"), start=1):
        building = BuildingInfo(building_number=_building_number(section, position))

        area_table = section.select_one("table[id$='gridBuildingArea']")
        for row in (area_table.find_all('tr')[1:] if area_table else []):
            cells = row.find_all('td')
            if len(cells) < 4:
                continue
            area_type = cells[0].get_text(strip=True)
            gross = parse_number(cells[1].get_text())
            heated = parse_number(cells[2].get_text())
            if re.search(r'total', area_type, re.I):
                if gross is not None:
                    building.total_gross = gross
                if heated is not None:
                    building.total_heated = heated
                continue
            floor = None
            if re.search(r'base', area_type, re.I):
                floor = 1
            upper = re.search(r'upper\s*story\s*(\d+)', area_type, re.I)
            if upper:
                floor = 1 + int(upper.group(1))
            if floor is not None:
                building.floor_areas.append(FloorArea(floor=floor, gross=gross, heated=heated))

        attribute_table = section.select_one("table[id$='gridBuildingAttributes']")
        for row in (attribute_table.find_all('tr') if attribute_table else []):
            cells = row.find_all('td')
            if len(cells) < 3:
                continue
            label = cells[0].get_text(strip=True)
            value = parse_number(cells[1].get_text())
            if value is None:
                continue
            if re.search(r'bedroom', label, re.I):
                building.bedrooms = max(0, round(value))
            if re.search(r'bath', label, re.I):
                building.baths = value
            if re.search(r'stories', label, re.I):
                building.stories = round(value)

        buildings.append(building)
    return buildings


def extract_building_elements(soup: BeautifulSoup) -> List[Dict[str, str]]:
    """Rows of the first building's element grid (Exterior Wall, Roof Struct, Air Cond...)"""
    table = soup.find(id=re.compile(r'gridBuildingElements$'))
    elements = []
    for row in (table.find_all('tr')[1:] if table else []):
        cells = row.find_all('td')
        if len(cells) >= 3:
            elements.append({
                "element": cells[0].get_text(strip=True),
                "code": cells[1].get_text(strip=True),
                "detail": cells[2].get_text(strip=True),
            })
    return elements


def element_details(elements: List[Dict[str, str]], name: str) -> List[str]:
    return [e["detail"] for e in elements if e["element"].lower() == name.lower()]


def read_features_csv(path: str) -> List[FeatureRecord]:
    """Read an extra-features CSV export (code, description, building, length, width, units)"""
    df = pd.read_csv(path, dtype={"code": str, "description": str, "building": str})
    features = []
    for _, row in df.iterrows():
        value = lambda name: row.get(name) if name in row and pd.notna(row.get(name)) else None
        building_raw = value("building")
        features.append(FeatureRecord(
            code=str(value("code") or "").strip(),
            description=str(value("description") or "").strip(),
            building_number=_as_int(parse_number(building_raw)),
            building_number_raw=building_raw,
            length=parse_number(value("length")),
            width=parse_number(value("width")),
            total_units=parse_number(value("units")),
        ))
    logger.info(f"Read {len(features)} extra features from {path}")
    return features
