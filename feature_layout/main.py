import os
import logging
from typing import Dict, List, Optional

from .config import Settings
from .counties.duval.layout_extractor import build_layouts_from_html, load_property_usage_type
from .counties.duval.structure_extractor import extract_structure_from_html
from .counties.duval.utility_extractor import extract_utility_from_html
from .counties.duval.utils import read_features_csv
from .models import FeatureRecord
from .utils import get_property_id, print_status, write_json
from .writers import write_layout_files

logger = logging.getLogger(__name__)


def list_input_files(input_dir: str, input_html: Optional[str] = None) -> List[str]:
    if input_html:
        return [input_html]
    if not os.path.isdir(input_dir):
        raise FileNotFoundError(f"Input directory {input_dir} does not exist")
    return sorted(os.path.join(input_dir, f) for f in os.listdir(input_dir) if f.endswith('.html'))


def process_property(html: str, property_id: str, settings: Settings,
                     usage_type: Optional[str] = None,
                     features: Optional[List[FeatureRecord]] = None,
                     write_files: bool = False) -> Dict[str, dict]:
    """Build layout, utility and structure output for one parcel page"""
    builder = build_layouts_from_html(html, property_id, usage_type, features,
                                      numbering=settings.index_numbering)
    result = {
        "layout": {"layouts": [node.to_dict() for node in builder.nodes]},
        "utility": extract_utility_from_html(html, property_id, features),
        "structure": extract_structure_from_html(html, property_id, features),
    }
    if write_files:
        out_dir = os.path.join(settings.data_dir, property_id)
        layout_files, relationship_files = write_layout_files(builder.nodes, out_dir)
        logger.info(f"📁 {property_id}: wrote {len(layout_files)} layout files and "
                    f"{len(relationship_files)} relationship files to {out_dir}")
    return result


def run(settings: Settings, input_html: Optional[str] = None, features_csv: Optional[str] = None,
        usage_type: Optional[str] = None, write_files: bool = False) -> Dict[str, int]:
    """
    Transform every county page in the input directory.

    Per-file failures are logged and counted; the batch keeps going.
    Returns counts of processed and failed files.

    Raises:
        ValueError: ``features_csv`` given without ``input_html``
    """
    if features_csv and not input_html:
        raise ValueError("A features CSV describes one property; pass input_html with it")
    files = list_input_files(settings.input_dir, input_html)
    if usage_type is None:
        usage_type = load_property_usage_type(os.path.join(settings.data_dir, "property.json"))
    features = read_features_csv(features_csv) if features_csv else None

    outputs = {"layout": {}, "utility": {}, "structure": {}}
    processed, failed = 0, 0
    for path in files:
        property_id = get_property_id(path)
        try:
            with open(path, 'r', encoding='utf-8', errors='ignore') as f:
                html = f.read()
            result = process_property(html, property_id, settings, usage_type, features, write_files)
        except Exception as e:
            logger.error(f"❌ Error processing {path}: {e}")
            print_status(f"  Error processing {os.path.basename(path)}: {e}")
            failed += 1
            continue
        for kind, payload in result.items():
            outputs[kind][f"property_{property_id}"] = payload
        processed += 1

    write_json(os.path.join(settings.output_dir, "layout_data.json"), outputs["layout"])
    write_json(os.path.join(settings.output_dir, "utility_data.json"), outputs["utility"])
    write_json(os.path.join(settings.output_dir, "structure_data.json"), outputs["structure"])
    print_status(f"Processed {processed} properties ({failed} failed) -> {settings.output_dir}")
    return {"processed": processed, "failed": failed}
