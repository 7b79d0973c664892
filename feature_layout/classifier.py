import logging
from typing import Iterable, Mapping, Optional

from .models import ClassificationResult, ClassificationRule, FeatureRecord
from .rules import DEFAULT_RULES

logger = logging.getLogger(__name__)


def _field(feature, name):
    if isinstance(feature, Mapping):
        value = feature.get(name)
    else:
        value = getattr(feature, name, None)
    return str(value).strip().upper() if value else ""


def classify_extra_feature(feature, rules: Iterable[ClassificationRule] = DEFAULT_RULES
                           ) -> Optional[ClassificationResult]:
    """
    Classify one extra-feature row against the rule table.

    Every matching rule contributes: layout and accessory fragments are
    appended in rule order, smart features are collected without duplicates,
    and adjustment keys from later rules overwrite earlier ones.

    Args:
        feature: FeatureRecord or a mapping with ``code``/``description`` keys
        rules: ordered rule table

    Returns:
        ClassificationResult, or None when the feature is blank or no rule matched
    """
    if not feature:
        return None
    code = _field(feature, "code")
    description = _field(feature, "description")
    if not code and not description:
        return None

    result = ClassificationResult()
    smart_features = {}

    for rule in rules:
        if not rule.matches(code, description):
            continue
        if rule.layout is not None:
            result.layout.append(rule.layout)
        if rule.accessory is not None:
            result.accessory_structures.append(rule.accessory)
        if rule.utility_smart_feature:
            smart_features.setdefault(rule.utility_smart_feature, None)
        if rule.utility_adjustments:
            result.utility_adjustments.update(rule.utility_adjustments)
        if rule.structure_adjustments:
            result.structure_adjustments.update(rule.structure_adjustments)

    result.utility_smart_features = list(smart_features)
    if result.is_empty():
        logger.debug(f"No rule matched feature code={code!r} description={description!r}")
        return None
    return result


def classify_extra_features(features: Iterable[FeatureRecord],
                            rules: Iterable[ClassificationRule] = DEFAULT_RULES):
    """Classify a feature table, returning ``(feature, result)`` pairs for matched rows only"""
    rules = tuple(rules)
    matched = []
    for feature in features:
        result = classify_extra_feature(feature, rules)
        if result is not None:
            matched.append((feature, result))
    return matched


def merge_classifications(results: Iterable[Optional[ClassificationResult]]) -> ClassificationResult:
    """Fold per-feature results into parcel-level facts with the same accumulation rules"""
    merged = ClassificationResult()
    for result in results:
        if result is None:
            continue
        merged.layout.extend(result.layout)
        merged.accessory_structures.extend(result.accessory_structures)
        for tag in result.utility_smart_features:
            if tag not in merged.utility_smart_features:
                merged.utility_smart_features.append(tag)
        merged.utility_adjustments.update(result.utility_adjustments)
        merged.structure_adjustments.update(result.structure_adjustments)
    return merged
