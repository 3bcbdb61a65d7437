"""
Page inspection: inventory of interactive components and the state machine
description some demo pages embed as JSON.
"""

import json
import logging
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from harness.session import Session

logger = logging.getLogger(__name__)

DEFAULT_FSM_SELECTOR = "script#fsm"

_DETECT_JS = """
() => {
    const cssEscape = (value) => window.CSS && CSS.escape ? CSS.escape(value) : value;
    const selectorFor = (el, tag, index) => {
        if (el.id) return `#${cssEscape(el.id)}`;
        if (el.getAttribute('name')) return `${tag}[name="${el.getAttribute('name')}"]`;
        return `${tag} >> nth=${index}`;
    };
    const labelFor = (el) => {
        if (el.labels && el.labels.length) return el.labels[0].textContent.trim();
        return (el.getAttribute('aria-label') || el.getAttribute('placeholder')
            || el.textContent || el.value || '').trim().slice(0, 80);
    };
    const groups = [
        ['input', 'input'],
        ['textarea', 'textarea'],
        ['select', 'select'],
        ['button', 'button'],
        ['canvas', 'canvas'],
        ['svg', 'svg'],
        ['link', 'a[href]'],
    ];
    const found = [];
    for (const [kind, selector] of groups) {
        document.querySelectorAll(selector).forEach((el, index) => {
            const tag = selector.split('[')[0];
            found.push({
                kind,
                selector: selectorFor(el, tag, index),
                label: labelFor(el),
                input_type: kind === 'input' ? (el.getAttribute('type') || 'text') : null,
                disabled: !!el.disabled,
            });
        });
    }
    return found;
}
"""


class ComponentKind(str, Enum):
    INPUT = "input"
    TEXTAREA = "textarea"
    SELECT = "select"
    BUTTON = "button"
    CANVAS = "canvas"
    SVG = "svg"
    LINK = "link"


class DetectedComponent(BaseModel):
    """An interactive control found on the page."""

    kind: ComponentKind
    selector: str
    label: str = ""
    input_type: Optional[str] = None
    disabled: bool = False

    model_config = ConfigDict(frozen=True, use_enum_values=False)


async def detect_components(session: Session) -> List[DetectedComponent]:
    """Inventory inputs, buttons, canvases and other interactive elements."""
    raw = await session.signals.guard(session.page.evaluate(_DETECT_JS))
    components: List[DetectedComponent] = []
    for item in raw if isinstance(raw, list) else []:
        try:
            components.append(DetectedComponent.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed component description {item!r}: {e}")
    logger.debug(f"Detected {len(components)} components")
    return components


def summarize_components(components: List[DetectedComponent]) -> Dict[str, int]:
    """Count components per kind."""
    summary: Dict[str, int] = {}
    for component in components:
        summary[component.kind.value] = summary.get(component.kind.value, 0) + 1
    return summary


async def extract_embedded_fsm(
    session: Session, selector: str = DEFAULT_FSM_SELECTOR
) -> Optional[Dict[str, object]]:
    """
    Parse the JSON state machine embedded in ``selector``.

    Returns None when the element is missing or its content is not a JSON
    object.
    """
    raw = await session.signals.guard(
        session.page.locator(selector).evaluate_all(
            "(nodes) => nodes.length ? nodes[0].textContent : null"
        )
    )
    if raw is None:
        return None
    try:
        parsed = json.loads(str(raw))
    except json.JSONDecodeError as e:
        logger.warning(f"Embedded FSM in {selector} is not valid JSON: {e}")
        return None
    if not isinstance(parsed, dict):
        logger.warning(f"Embedded FSM in {selector} is not a JSON object")
        return None
    return parsed
