"""Field extraction rules for job detail pages.

The selectors and Vietnamese labels used by the source site live in
``config/extraction_rules.yml`` (override with JOBBOARD_RULES_FILE). This module
only knows the rule *types*; a markup or wording change on the site is a data
edit in that table.

Every rule degrades to an empty string when its target is missing, so
``RuleSet.extract`` never fails on incomplete pages.
"""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urljoin
import os, yaml

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter
from bs4.element import Tag
from soupsieve import SelectorSyntaxError

from .models import RECORD_FIELDS
from .settings import CONFIG_DIR

REGION_KEYS = {
    'content_group': ('container', 'title', 'content'),
    'attr_item': ('container', 'name', 'value'),
    'labeled_pair': ('container', 'label', 'value'),
}

_CACHE: Optional['RuleSet'] = None


def _inner_html_entities(value: str) -> str:
    return EntitySubstitution.substitute_xml(value).replace("\xa0", "&nbsp;")


# serializes markup the way the DOM innerHTML property does
INNER_HTML = HTMLFormatter(entity_substitution=_inner_html_entities, void_element_close_prefix="")


def _text(el: Optional[Tag]) -> str:
    if el is None:
        return ''
    return el.get_text().strip()


def _rule_text(soup, rule, regions, page_url) -> str:
    return _text(soup.select_one(rule['selector']))


def _rule_content_group(soup, rule, regions, page_url) -> str:
    region = regions['content_group']
    for group in soup.select(region['container']):
        title = group.select_one(region['title'])
        if title is not None and rule['label'] in title.get_text():
            content = group.select_one(region['content'])
            return content.decode_contents(formatter=INNER_HTML).strip() if content is not None else ''
    return ''


def _rule_attr_item(soup, rule, regions, page_url) -> str:
    region = regions['attr_item']
    for item in soup.select(region['container']):
        name = item.select_one(region['name'])
        if name is not None and rule['label'] in name.get_text():
            return _text(item.select_one(region['value']))
    return ''


def _rule_labeled_pair(soup, rule, regions, page_url) -> str:
    region = regions['labeled_pair']
    for item in soup.select(region['container']):
        label = item.select_one(region['label'])
        if label is not None and rule['label'] in label.get_text().strip():
            return _text(item.select_one(region['value']))
    return ''


def _rule_fallback_chain(soup, rule, regions, page_url) -> str:
    for step in rule['steps']:
        el = soup.select_one(step['selector'])
        if el is None:
            continue
        value = _text(el) if step.get('text') else el.get(step['attr'])
        if isinstance(value, list):  # multi-valued attributes (class, rel)
            value = ' '.join(value)
        if value:
            return value
    return ''


def _rule_static_attr(soup, rule, regions, page_url) -> str:
    el = soup.select_one(rule['selector'])
    if el is None:
        return ''
    value = el.get(rule['attr']) or ''
    if isinstance(value, list):
        value = ' '.join(value)
    if value and rule.get('resolve_url') and page_url:
        # mirror the DOM property, which is always absolute
        value = urljoin(page_url, value)
    return value


RULES: Dict[str, Callable[..., str]] = {
    'text': _rule_text,
    'content_group': _rule_content_group,
    'attr_item': _rule_attr_item,
    'labeled_pair': _rule_labeled_pair,
    'fallback_chain': _rule_fallback_chain,
    'static_attr': _rule_static_attr,
}


def _check_selector(sel: Any, where: str, errors: List[str]):
    if not isinstance(sel, str) or not sel.strip():
        errors.append(f"{where}: selector missing")
        return
    try:
        BeautifulSoup('', 'html.parser').select_one(sel)
    except SelectorSyntaxError:
        errors.append(f"{where}: invalid selector {sel!r}")


def _validate(regions: Dict[str, Any], fields: Dict[str, Any]):
    errors: List[str] = []
    unknown = [k for k in fields if k not in RECORD_FIELDS]
    if unknown:
        errors.append(f"unknown fields: {', '.join(unknown)}")
    used_regions = set()
    for name, rule in fields.items():
        if not isinstance(rule, dict):
            errors.append(f"{name}: rule must be a mapping")
            continue
        kind = rule.get('rule')
        if kind not in RULES:
            errors.append(f"{name}: unknown rule type {kind!r}")
            continue
        if kind in ('text', 'static_attr'):
            _check_selector(rule.get('selector'), name, errors)
        if kind == 'static_attr' and not rule.get('attr'):
            errors.append(f"{name}: attr missing")
        if kind in REGION_KEYS:
            used_regions.add(kind)
            if not rule.get('label'):
                errors.append(f"{name}: label missing")
        if kind == 'fallback_chain':
            steps = rule.get('steps') or []
            if not steps:
                errors.append(f"{name}: steps missing")
            for i, step in enumerate(steps):
                if not isinstance(step, dict):
                    errors.append(f"{name}.steps[{i}]: step must be a mapping")
                    continue
                _check_selector(step.get('selector'), f"{name}.steps[{i}]", errors)
                if not step.get('attr') and not step.get('text'):
                    errors.append(f"{name}.steps[{i}]: needs attr or text")
    for region in sorted(used_regions):
        keys = regions.get(region) or {}
        for key in REGION_KEYS[region]:
            _check_selector(keys.get(key), f"regions.{region}.{key}", errors)
    if errors:
        raise ValueError("Invalid extraction rules: " + "; ".join(errors))


@dataclass(frozen=True)
class RuleSet:
    regions: Dict[str, Dict[str, str]]
    fields: Dict[str, Dict[str, Any]]

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'RuleSet':
        regions = raw.get('regions') or {}
        fields = raw.get('fields') or {}
        _validate(regions, fields)
        return cls(regions=regions, fields=fields)

    def extract(self, html: str, page_url: str = '') -> Dict[str, str]:
        """Map a rendered detail page to the descriptive record fields."""
        soup = BeautifulSoup(html or '', 'html.parser')
        out: Dict[str, str] = {}
        for name in RECORD_FIELDS:
            rule = self.fields.get(name)
            out[name] = RULES[rule['rule']](soup, rule, self.regions, page_url) if rule else ''
        return out


def _resolve_file() -> Path:
    override = os.getenv('JOBBOARD_RULES_FILE')
    if override:
        p = Path(override)
        if not p.exists():
            raise ValueError(f"Rules file override not found: {p}")
        return p
    return CONFIG_DIR / 'extraction_rules.yml'


def load_rules(force_reload: bool = False) -> RuleSet:
    global _CACHE
    if _CACHE is not None and not force_reload:
        return _CACHE
    raw = yaml.safe_load(_resolve_file().read_text(encoding='utf-8')) or {}
    _CACHE = RuleSet.from_dict(raw)
    return _CACHE


__all__ = ['RuleSet', 'load_rules', 'RULES']
