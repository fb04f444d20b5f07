# brandsync/theme/resolver.py
"""
Precedence resolution of a tenant's theme.

``resolve_theme`` is a pure function of its four inputs. For every field the
first valid value wins in this order: surface override section, general token
document section, legacy flat field, compiled default. A value that fails the
field's type (a malformed document) is skipped and the next tier is consulted,
so one bad field never discards the rest of a document.
"""

import logging
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple, TYPE_CHECKING, Union, get_args
from typing_extensions import Annotated

from pydantic import BaseModel, TypeAdapter, ValidationError

from .defaults import DEFAULT_IMAGE_OVERLAY, DEFAULT_PATTERN_COLOR
from .fields import (
    FIELD_RULES,
    GROUP_RULES,
    LEGACY_BACKGROUND_COLUMNS,
    FieldRule,
    GroupRule,
    group_override_paths,
    override_paths,
    surface_sections,
)
from .merge import MISSING, canonical_json, deep_merge, get_path
from .models import ResolvedTheme

if TYPE_CHECKING:
    from ..store.models import LegacyFields, TokenDocument

logger = logging.getLogger(__name__)

TokenInput = Union["TokenDocument", Mapping[str, Any], None]
LegacyInput = Union["LegacyFields", Mapping[str, Any], None]

_BACKGROUND_FIELDS = {
    "imageUrl": "background_image_url",
    "imageOverlay": "background_image_overlay",
    "gradientStart": "background_gradient_start",
    "gradientEnd": "background_gradient_end",
    "pattern": "background_pattern",
    "patternColor": "background_pattern_color",
}
_BACKGROUND_MODE_ORDER = ("image", "gradient", "pattern")


def _field_type(model: type, name: str) -> Any:
    """Rebuild a field's full annotation, constraints included."""
    info = model.model_fields[name]
    if info.metadata:
        return Annotated[(info.annotation, *info.metadata)]
    return info.annotation


_FIELD_ADAPTERS: Dict[str, TypeAdapter] = {
    name: TypeAdapter(_field_type(ResolvedTheme, name)) for name in ResolvedTheme.model_fields
}


def _group_leaf_validator(name: str) -> Callable[[str, Any], Any]:
    """
    Build a ``(key, value) -> value`` validator for one leaf of a nested group.

    Dict groups validate every value against the dict's value type. Model
    groups (card style) validate by camelCase alias and reject unknown keys.
    """
    annotation = ResolvedTheme.model_fields[name].annotation
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        by_alias = {
            (info.alias or field_name): TypeAdapter(_field_type(annotation, field_name))
            for field_name, info in annotation.model_fields.items()
        }

        def validate_model_leaf(key: str, value: Any) -> Any:
            if key not in by_alias:
                raise KeyError(key)
            return by_alias[key].validate_python(value)

        return validate_model_leaf

    leaf_adapter = TypeAdapter(get_args(annotation)[1])

    def validate_dict_leaf(key: str, value: Any) -> Any:
        return leaf_adapter.validate_python(value)

    return validate_dict_leaf


_GROUP_VALIDATORS: Dict[str, Callable[[str, Any], Any]] = {
    rule.name: _group_leaf_validator(rule.name) for rule in GROUP_RULES
}


def _is_absent(value: Any) -> bool:
    if value is MISSING or value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, tuple)) and not value:
        return True
    return False


def _try_validate(adapter: TypeAdapter, value: Any) -> Tuple[bool, Any]:
    try:
        return True, adapter.validate_python(value)
    except ValidationError:
        return False, None


def _document_tokens(token_document: TokenInput) -> Mapping[str, Any]:
    if token_document is None:
        return {}
    tokens = getattr(token_document, "tokens", token_document)
    if not isinstance(tokens, Mapping):
        logger.warning(f"Token document payload is not a mapping ({type(tokens).__name__}); ignoring it.")
        return {}
    return tokens


def _legacy_mapping(legacy: LegacyInput) -> Mapping[str, Any]:
    if legacy is None:
        return {}
    fields = getattr(legacy, "fields", legacy)
    if not isinstance(fields, Mapping):
        logger.warning(f"Legacy fields are not a mapping ({type(fields).__name__}); ignoring them.")
        return {}
    return fields


def _field_candidates(
    rule: FieldRule,
    tokens: Mapping[str, Any],
    legacy: Mapping[str, Any],
    sections: Tuple[str, ...],
) -> Iterator[Tuple[str, Any]]:
    for path in override_paths(rule, sections):
        yield path, get_path(tokens, path)
    for path in rule.tokens:
        yield path, get_path(tokens, path)
    for key in rule.legacy:
        yield f"legacy:{key}", legacy.get(key, MISSING)


def _resolve_field(
    rule: FieldRule,
    tokens: Mapping[str, Any],
    legacy: Mapping[str, Any],
    sections: Tuple[str, ...],
    default: Any,
) -> Any:
    adapter = _FIELD_ADAPTERS[rule.name]
    for source, candidate in _field_candidates(rule, tokens, legacy, sections):
        if _is_absent(candidate):
            continue
        ok, value = _try_validate(adapter, candidate)
        if ok:
            return value
        logger.debug(f"Malformed value for '{rule.name}' at '{source}': {candidate!r}; falling through.")
    return default


def _sanitize_group(rule: GroupRule, layer: Any, source: str) -> Dict[str, Any]:
    if _is_absent(layer):
        return {}
    if not isinstance(layer, Mapping):
        logger.debug(f"Group '{rule.name}' at '{source}' is not a mapping; ignoring it.")
        return {}
    validate_leaf = _GROUP_VALIDATORS[rule.name]
    clean: Dict[str, Any] = {}
    for key, value in layer.items():
        if _is_absent(value):
            continue
        try:
            clean[str(key)] = validate_leaf(str(key), value)
        except (ValidationError, KeyError):
            logger.debug(f"Dropping malformed '{rule.name}.{key}' at '{source}': {value!r}")
    return clean


def _resolve_group(
    rule: GroupRule,
    tokens: Mapping[str, Any],
    legacy: Mapping[str, Any],
    sections: Tuple[str, ...],
    default: Any,
) -> Any:
    if isinstance(default, BaseModel):
        merged: Dict[str, Any] = default.model_dump(by_alias=True)
    else:
        merged = dict(default)

    layers = []
    if rule.legacy_prefix:
        prefix = rule.legacy_prefix
        legacy_layer = {k[len(prefix):]: v for k, v in legacy.items() if k.startswith(prefix)}
        layers.append(("legacy", legacy_layer))
    layers.append((rule.token_path, get_path(tokens, rule.token_path)))
    # Override paths are listed highest first; merge lowest first
    for path in reversed(group_override_paths(rule, sections)):
        layers.append((path, get_path(tokens, path)))

    for source, layer in layers:
        merged = deep_merge(merged, _sanitize_group(rule, layer, source))
    return merged


def _background_tiers(
    tokens: Mapping[str, Any],
    legacy: Mapping[str, Any],
    sections: Tuple[str, ...],
) -> Iterator[Tuple[str, Any]]:
    for section in sections:
        yield f"{section}.background", get_path(tokens, f"{section}.background")
    yield "background", get_path(tokens, "background")
    yield "legacy", {key: legacy.get(column) for key, column in LEGACY_BACKGROUND_COLUMNS.items()}


def _clean_background(tier: Any, source: str) -> Optional[Dict[str, Any]]:
    if not isinstance(tier, Mapping):
        if not _is_absent(tier):
            logger.debug(f"Background at '{source}' is not a mapping; ignoring it.")
        return None
    clean: Dict[str, Any] = {}
    for key, field_name in _BACKGROUND_FIELDS.items():
        value = tier.get(key)
        if _is_absent(value):
            continue
        if key == "pattern" and isinstance(value, str) and value.strip().lower() == "none":
            continue
        ok, validated = _try_validate(_FIELD_ADAPTERS[field_name], value)
        if ok:
            clean[key] = validated
        else:
            logger.debug(f"Dropping malformed background '{key}' at '{source}': {value!r}")
    mode = tier.get("mode")
    if not _is_absent(mode):
        ok, validated_mode = _try_validate(_FIELD_ADAPTERS["background_mode"], mode)
        if ok:
            clean["mode"] = validated_mode
    return clean


def _select_background_mode(clean: Dict[str, Any]) -> Optional[str]:
    """
    Pick the background mode a tier declares, or ``None`` if it declares none.

    An explicit, complete ``mode`` wins; otherwise the first complete mode in
    image, gradient, pattern order. A tier that declares something incomplete
    (a gradient with only a start color) resolves to solid.
    """
    complete = {
        "image": "imageUrl" in clean,
        "gradient": "gradientStart" in clean and "gradientEnd" in clean,
        "pattern": "pattern" in clean,
    }
    explicit = clean.get("mode")
    declared = explicit is not None or any(
        key in clean for key in ("imageUrl", "gradientStart", "gradientEnd", "pattern")
    )
    if not declared:
        return None
    if explicit == "solid":
        return "solid"
    if explicit is not None and complete.get(explicit):
        return explicit
    for mode in _BACKGROUND_MODE_ORDER:
        if complete[mode]:
            return mode
    return "solid"


def _resolve_background(
    tokens: Mapping[str, Any],
    legacy: Mapping[str, Any],
    sections: Tuple[str, ...],
) -> Dict[str, Any]:
    resolved: Dict[str, Any] = {field_name: None for field_name in _BACKGROUND_FIELDS.values()}
    resolved["background_mode"] = "solid"

    for source, tier in _background_tiers(tokens, legacy, sections):
        clean = _clean_background(tier, source)
        if clean is None:
            continue
        mode = _select_background_mode(clean)
        if mode is None:
            continue
        resolved["background_mode"] = mode
        if mode == "image":
            resolved["background_image_url"] = clean["imageUrl"]
            resolved["background_image_overlay"] = clean.get("imageOverlay", DEFAULT_IMAGE_OVERLAY)
        elif mode == "gradient":
            resolved["background_gradient_start"] = clean["gradientStart"]
            resolved["background_gradient_end"] = clean["gradientEnd"]
        elif mode == "pattern":
            resolved["background_pattern"] = clean["pattern"]
            resolved["background_pattern_color"] = clean.get("patternColor", DEFAULT_PATTERN_COLOR)
        break
    return resolved


def resolve_theme(
    defaults: ResolvedTheme,
    legacy: LegacyInput,
    token_document: TokenInput,
    surface: Optional[str] = None,
) -> ResolvedTheme:
    """
    Resolve one theme from defaults, legacy fields, the active token document
    and the surface override key.

    Args:
        defaults: Total floor theme, usually ``DEFAULT_THEME``
        legacy: Flat legacy settings (``LegacyFields`` or a mapping), or None
        token_document: The active ``TokenDocument`` (or its raw tokens), or
            None when the tenant has no active document
        surface: ``"mobile"``, ``"preview"``, ``"web"`` or None

    Returns:
        A new frozen ``ResolvedTheme``. Never raises for absent or malformed
        inputs.
    """
    tokens = _document_tokens(token_document)
    legacy_fields = _legacy_mapping(legacy)
    sections = surface_sections(surface)

    values: Dict[str, Any] = {}
    for rule in FIELD_RULES:
        values[rule.name] = _resolve_field(
            rule, tokens, legacy_fields, sections, getattr(defaults, rule.name)
        )
    for group_rule in GROUP_RULES:
        values[group_rule.name] = _resolve_group(
            group_rule, tokens, legacy_fields, sections, getattr(defaults, group_rule.name)
        )
    values.update(_resolve_background(tokens, legacy_fields, sections))

    return ResolvedTheme.model_validate(values)


class ThemeMemo:
    """
    Single-entry memo of ``resolve_theme`` owned by one consumer.

    Holds the last inputs and their result; identical inputs return the
    identical theme object. There is no eviction: a new input simply replaces
    the entry.
    """

    def __init__(self):
        self._key: Optional[str] = None
        self._theme: Optional[ResolvedTheme] = None

    def resolve(
        self,
        defaults: ResolvedTheme,
        legacy: LegacyInput,
        token_document: TokenInput,
        surface: Optional[str] = None,
    ) -> ResolvedTheme:
        key = canonical_json({
            "defaults": defaults.model_dump(mode="json"),
            "legacy": dict(_legacy_mapping(legacy)),
            "tokens": dict(_document_tokens(token_document)),
            "surface": surface,
        })
        if self._theme is not None and key == self._key:
            return self._theme
        self._theme = resolve_theme(defaults, legacy, token_document, surface)
        self._key = key
        return self._theme
