"""
Extra-feature classification rules.

The table is built once at import time by ``build_default_rules``: hand-written
pattern rules come first, exact-code rules are appended after them. Rule order
decides which adjustment value wins when two rules set the same key.
"""

import logging
import re
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .models import AccessoryDescriptor, ClassificationRule, LayoutDescriptor

logger = logging.getLogger(__name__)

PatternLike = Union[str, re.Pattern]

_CODE_MATCHER_CACHE: Dict[str, re.Pattern] = {}
_CODE_MATCHER_LOCK = threading.Lock()


def normalize_code(code) -> str:
    if code is None:
        return ""
    return str(code).strip().upper()


def create_code_matcher(code) -> Optional[re.Pattern]:
    """Return the anchored ``^CODE$`` pattern for a feature code, or None if the code is blank"""
    normalized = normalize_code(code)
    if not normalized:
        return None
    with _CODE_MATCHER_LOCK:
        matcher = _CODE_MATCHER_CACHE.get(normalized)
        if matcher is None:
            matcher = re.compile(f"^{re.escape(normalized)}$", re.IGNORECASE)
            _CODE_MATCHER_CACHE[normalized] = matcher
        return matcher


def clear_code_matcher_cache():
    with _CODE_MATCHER_LOCK:
        _CODE_MATCHER_CACHE.clear()


def _compile(pattern: PatternLike) -> re.Pattern:
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern, re.IGNORECASE)


def _layout(layout) -> Optional[LayoutDescriptor]:
    if layout is None:
        return None
    if isinstance(layout, LayoutDescriptor):
        return layout
    space_type = layout.get("space_type") or layout.get("spaceType")
    if not space_type:
        return None
    return LayoutDescriptor(
        space_type=space_type,
        is_exterior=bool(layout.get("is_exterior", layout.get("isExterior", False))),
        is_finished=bool(layout.get("is_finished", layout.get("isFinished", False))),
    )


def _accessory(accessory) -> Optional[AccessoryDescriptor]:
    if accessory is None:
        return None
    if isinstance(accessory, AccessoryDescriptor):
        return accessory
    if isinstance(accessory, str):
        return AccessoryDescriptor(accessory) if accessory else None
    accessory_type = accessory.get("type")
    return AccessoryDescriptor(accessory_type) if accessory_type else None


class RuleTableBuilder:
    """Collects rules in insertion order and freezes them with ``build()``"""

    def __init__(self):
        self._rules: List[ClassificationRule] = []

    def __len__(self):
        return len(self._rules)

    def _append(self, matchers, layout=None, accessory=None, utility_smart_feature=None,
                utility_adjustments: Optional[Mapping[str, Any]] = None,
                structure_adjustments: Optional[Mapping[str, Any]] = None):
        rule = ClassificationRule(
            matchers=tuple(matchers),
            layout=_layout(layout),
            accessory=_accessory(accessory),
            utility_smart_feature=utility_smart_feature or None,
            utility_adjustments=utility_adjustments or None,
            structure_adjustments=structure_adjustments or None,
        )
        self._rules.append(rule)
        return rule

    def add_pattern_rule(self, matchers: Iterable[PatternLike], **descriptor) -> ClassificationRule:
        """Append a hand-written rule. String patterns compile case-insensitively."""
        compiled = [_compile(m) for m in matchers]
        return self._append(compiled, **descriptor)

    def add_exact_code_rule(self, codes: Iterable[str], **descriptor) -> Optional[ClassificationRule]:
        """Append one rule matching any of ``codes`` exactly.

        Blank codes and codes that fail to compile are skipped. Nothing is
        appended when no code survives.
        """
        if not codes:
            return None
        matchers = []
        for code in codes:
            try:
                matcher = create_code_matcher(code)
            except re.error as e:
                logger.warning(f"Skipping feature code {code!r}: {e}")
                continue
            if matcher is not None:
                matchers.append(matcher)
        if not matchers:
            return None
        return self._append(matchers, **descriptor)

    def build(self) -> Tuple[ClassificationRule, ...]:
        return tuple(self._rules)


def _floor_space_type(floor_number: int) -> str:
    return {2: "Second Floor", 3: "Third Floor", 4: "Fourth Floor"}.get(floor_number, "Floor")


# Finished upper stories FUA..FUT cover floors 2 through 21
FINISHED_UPPER_STORY_CODES = [f"FU{chr(65 + i)}" for i in range(20)]

BUSINESS_AREA_CODES = [f"BU{chr(c)}" for c in range(ord("A"), ord("U") + 1)]


def add_pattern_rules(builder: RuleTableBuilder):
    exterior = lambda space_type: {"space_type": space_type, "is_exterior": True, "is_finished": False}

    builder.add_pattern_rule([r"^POL", r"^PLX", r"POOL"],
                             layout=exterior("Outdoor Pool"), accessory="Pool")
    builder.add_pattern_rule(
        [r"^SPAC", r"^SPAR", r"^SPAB", r"^JAC", r"HOT\s*TUB", r"JACUZZI",
         r"\bSPA\b(?=.*(HOT|TUB|JACUZZI))"],
        layout=exterior("Hot Tub / Spa Area"), accessory="Hot Tub")
    builder.add_pattern_rule(
        [r"^SCP", r"^SCN", r"^SC[A-Z]", r"^FSP", r"^FDS", r"^UDS", r"^USP", r"SCREEN(?:ED)?\s*PORCH"],
        layout=exterior("Screened Porch"))
    builder.add_pattern_rule([r"^FEP", r"^ENCL?", r"ENCLOSED PORCH"], layout=exterior("Enclosed Porch"))
    builder.add_pattern_rule([r"^FOP", r"^OP(?!P)", r"OPEN\s+PORCH"], layout=exterior("Open Porch"))
    builder.add_pattern_rule([r"^DCK", r"^DC", r"DECK"], layout=exterior("Deck"))
    builder.add_pattern_rule([r"^PTO", r"^PAT", r"PATIO"], layout=exterior("Patio"))
    builder.add_pattern_rule([r"^BAL", r"^LOG", r"BALCONY"], layout=exterior("Balcony"))
    builder.add_pattern_rule([r"^CAB", r"CABANA"], layout=exterior("Enclosed Cabana"), accessory="Cabana")
    builder.add_pattern_rule([r"^GZ", r"GAZEBO"], layout=exterior("Gazebo"), accessory="Gazebo")
    builder.add_pattern_rule([r"^CP", r"^CPP", r"CARPORT"],
                             layout=exterior("Detached Carport"), accessory="Carport")
    builder.add_pattern_rule([r"^FCP", r"^FDC", r"DET\s*CARPORT"],
                             layout=exterior("Detached Carport"), accessory="Carport")
    builder.add_pattern_rule([r"^FGR", r"^FDG", r"GARAGE"],
                             layout=exterior("Detached Garage"), accessory="Garage")
    builder.add_pattern_rule([r"^GR"], layout=exterior("Detached Garage"), accessory="Garage")
    builder.add_pattern_rule([r"^SH", r"^TS", r"^HS", r"^ST", r"SHED"],
                             layout=exterior("Shed"), accessory="Shed")
    builder.add_pattern_rule([r"^GH", r"GREENHOUSE"],
                             layout={"space_type": "Greenhouse", "is_exterior": True, "is_finished": True},
                             accessory="Greenhouse")
    builder.add_pattern_rule([r"^MZ", r"LOFT"],
                             layout={"space_type": "Storage Loft", "is_finished": True},
                             accessory="Storage Loft")
    builder.add_pattern_rule([r"^RB", r"GAME ROOM"], layout={"space_type": "Game Room", "is_finished": True})
    builder.add_pattern_rule([r"^PV", r"PAV(?:E|ING)"], accessory="Paved Surface")
    builder.add_pattern_rule([r"^FCL", r"^FCB", r"^FC", r"^FW", r"FENCE"], accessory="Fence")
    builder.add_pattern_rule([r"^WM", r"WALL"], accessory="Retaining Wall")
    builder.add_pattern_rule([r"^LP", r"LIGHT\s*POLE"], accessory="Light Pole",
                             utility_smart_feature="Exterior Lighting")
    builder.add_pattern_rule([r"^FP", r"FIREPLACE"], utility_smart_feature="Fireplace")
    builder.add_pattern_rule([r"^EL", r"ELEVATOR"], utility_smart_feature="Elevator")
    builder.add_pattern_rule([r"^ES\d", r"ESCALATOR"], utility_smart_feature="Escalator")
    builder.add_pattern_rule([r"^FE(?!NC)", r"FREIGHT\s+ELEV"], utility_smart_feature="Freight Elevator")
    builder.add_pattern_rule([r"^SDS", r"^SWS", r"SPRINKLER"], utility_smart_feature="Fire Sprinkler System")
    builder.add_pattern_rule([r"^SN", r"SAUNA"], utility_smart_feature="Sauna")
    builder.add_pattern_rule([r"^SV", r"^VAL", r"SOUND", r"AUDIO"], utility_smart_feature="Sound System")
    builder.add_pattern_rule([r"^SOL", r"SOLAR"], utility_adjustments={"solarPanelPresent": True})


def add_exact_code_rules(builder: RuleTableBuilder):
    interior = lambda space_type, finished=True: {"space_type": space_type, "is_finished": finished}
    exterior = lambda space_type, finished=False: {
        "space_type": space_type, "is_exterior": True, "is_finished": finished}
    add = builder.add_exact_code_rule

    add(["ADD", "ADT", "APT", "AD", "ADP", "ADX"], layout=interior("Living Area"))
    add(["AOF", "FOF", "GOF", "LOF", "MOF"], layout=interior("Office Room"))
    add(BUSINESS_AREA_CODES, layout=interior("Common Room"))
    add(["BRA", "BRG", "BRS"], layout=interior("Bar Area"))
    add(["BA", "BAL", "BP"], layout=exterior("Balcony"))
    add(["BAS"], layout=interior("First Floor"))
    add(["BSM", "SFB", "UBM"], layout=interior("Basement", False))
    add(["FBM"], layout=interior("Basement"))
    add(["BRCK"], structure_adjustments={"exterior_wall_material_primary": "Brick"})
    add(["FAT", "FHS"], layout=interior("Attic"))
    add(["FST"], layout=interior("Storage Room"))
    add(["SC"], layout=interior("Storage Room"))
    add(["UST"], layout=interior("Storage Room", False))
    add(["ST"], layout=interior("Storage Room", False))
    add(["FDU"], layout=exterior("Detached Utility Closet", True))
    add(["UDU"], layout=exterior("Detached Utility Closet"))

    for idx, code in enumerate(FINISHED_UPPER_STORY_CODES):
        add([code], layout=interior(_floor_space_type(idx + 2)))

    add(["UUS"], layout=interior("Floor", False))
    add(["KTA", "KTG"], layout=interior("Kitchen"))
    add(["LBA", "LBG"], layout=interior("Lobby / Entry Hall"))
    add(["RSA", "RSG"], layout=interior("Dining Room"))
    add(["SDA"], layout=interior("Common Room"))
    add(["SPA"], layout=interior("Plant Floor"))
    add(["MEZ", "LF", "MZSC6", "MZWC6", "MZWR7"], layout=interior("Storage Loft"))
    add(["CAN", "CDN", "CDCC2", "CDMC2", "CDMR2", "CDWC2", "CDWR2"], layout=exterior("Porch"))
    add(["CLP", "ULP"], layout=exterior("Patio"))
    add(["CVPC2", "CVPR2", "OPP"], layout=exterior("Patio"))
    add(["STP"], layout=exterior("Stoop"))
    add(["ASP", "SLB", "SL", "MHPC3", "MHPR5"], accessory="Paved Surface")
    add(["UCP", "UDC", "CP", "CPP", "CPAC2", "CPAR2", "CPMC2", "CPMR2", "CPWC2", "CPWR2"],
        layout=exterior("Detached Carport"), accessory="Carport")
    add(["UDG", "UGR"], layout=exterior("Detached Garage"), accessory="Garage")
    add(["UCB"], layout=exterior("Enclosed Cabana"), accessory="Cabana")
    add(["UEP"], layout=exterior("Enclosed Porch"))
    add(["UOP"], layout=exterior("Open Porch"))
    add(["EP", "GP", "GPP", "GPX"], layout=exterior("Enclosed Porch"))
    add(["SO", "SFRC2", "SFRR2"], layout=interior("Sunroom"))
    add(["SCNA", "SCNF", "SCNG", "SEFP", "SCNC5", "SCNR3"], layout=exterior("Screen Enclosure (Custom)"))
    add(["SP", "SPP", "SPX", "SCPC2", "SCPR2"], layout=exterior("Screened Porch"))
    add(["BCWC5", "BCWR6"], accessory="Boat Cover")
    add(["BS", "BSP", "BSPP", "BSS", "BSVC5", "BSVR6"], accessory="Boat Slip")
    add(["BHAC1", "BHCC1", "BHPC1", "BHPR6", "BHSC1", "BHWC1", "BHWR6"], accessory="Bulkhead")
    add(["BVMC6"], layout=interior("Safe Room / Panic Room"))
    add(["BVRC6"], layout=interior("Storage Room"))
    add(["CRCC2", "CRCR2", "CSDC2", "CSDR2", "CSSR2", "DACC2", "DACR2", "HSDC2", "HSDR2",
         "HSSC2", "HSSR2", "STCC2", "STCR2", "STDC2", "STDR2", "STSC2", "STSR2"],
        accessory="Barn")
    add(["DHCC5", "DHCR6", "DHWC5", "DHWR6", "DLWC5", "DLWR6", "DMCC5", "DMCR6", "DMWC5",
         "DMWR6", "DK", "RWDC1"],
        accessory="Dock")
    add(["PHCR2", "PHDR2"], accessory="Poultry House")
    add(["DKWC2", "DKWR2"], layout=exterior("Deck"))
    add(["ESDC2", "ESDR2", "ESSC2", "ESSR2", "ESMR2"], accessory="Shed")
    add(["FVYC1"], accessory="Fence")
    add(["GBCC2", "GBCR2", "GBDC2", "GBDR2", "GBSR2"], accessory="Barn")
    add(["GLSC1", "GLSR5"], accessory="Guardrail")
    add(["GOFC5", "GOMC5"], accessory="Golf Course")
    add(["GRBC2", "GRBR2", "GRCC2", "GRCR2", "GRMC2", "GRMR2", "GRWC2", "GRWR2"], accessory="Garage")
    add(["LITC1", "LITR5"], accessory="Exterior Lighting", utility_smart_feature="Exterior Lighting")
    add(["RBCC5", "RBCR2"], accessory="Sports Court")
    add(["RELC6", "RELR7"], utility_smart_feature="Elevator")
    add(["ESAC6", "ESAR7", "ESCC6", "ESCR7", "ESHC6", "ESHR7", "ESRC6", "ESRR7"],
        utility_smart_feature="Elevator")
    add(["RRSC1", "RRSR5"], accessory="Railroad Spur")
    add(["SIMR5"], accessory="Site Improvement")
    add(["SNAC5", "SNAR7"], utility_smart_feature="Sauna")
    add(["SPAC5", "SPAR3"], layout=exterior("Hot Tub / Spa Area"), accessory="Hot Tub")
    add(["TCAC5", "TCAR5", "TCCC5", "TCCR5", "TCLC5", "TCLR5"], accessory="Tennis Court")
    add(["TSCC2", "TSCR2", "TSDR2", "TSSC2", "TSSR2"], accessory="Shed")
    add(["UTCC2", "UTCR2", "UTDC2", "UTDR2", "UTSC2", "UTSR2"], accessory="Utility Building")


def build_default_rules() -> Tuple[ClassificationRule, ...]:
    builder = RuleTableBuilder()
    add_pattern_rules(builder)
    add_exact_code_rules(builder)
    rules = builder.build()
    logger.debug(f"Built {len(rules)} extra-feature rules")
    return rules


DEFAULT_RULES = build_default_rules()
