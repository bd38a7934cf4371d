"""Serialize a vessel spawn configuration into a ``<lotus_param>`` document.

The backend parses this document to attach plugins to the spawned vessel:

    <lotus_param>
      <render_interface>...</render_interface>
      <physics_engine_interface>...</physics_engine_interface>
      <waypoint_follower><follower>...</follower></waypoint_follower>
    </lotus_param>

Every section is optional and disabled sections leave no trace. All data is
element content; there are no attributes and no namespace.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any, Iterable, Optional

from ..core.spawn_config import (
    PHYSICS_MODES,
    CircleFollower,
    LineFollower,
    PhysicsBlock,
    RenderBlock,
    VesselSpawnConfig,
    WaypointFollowerBlock,
    WaypointsFollower,
)

ROOT_TAG = "lotus_param"

_MARKUP_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)

_CONTROL_WS = re.compile(r"[\n\r\t]")
_WS_RUN = re.compile(r"\s{2,}")
_BETWEEN_TAGS = re.compile(r">\s+<")


def escape_markup(text: Optional[str]) -> str:
    """Escape the five reserved markup characters. ``&`` goes first."""
    out = "" if text is None else str(text)
    for char, entity in _MARKUP_ESCAPES:
        out = out.replace(char, entity)
    return out


def format_value(value: Any) -> str:
    """Textual form of a boolean or numeric field, as the backend expects it."""
    if value is None:
        return "0"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return _format_float(value)
    return str(value)


def _format_float(value: float) -> str:
    """Shortest round-trip digits laid out like ``Number#toString``.

    Plain notation for magnitudes in [1e-6, 1e21), scientific
    (``1e+21``, ``1.5e-7``) outside it.
    """
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    # value == 0.<digits> * 10**n
    n = exponent + k
    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        e = n - 1
        mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
        text = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + text


def normalize_document(document: str) -> str:
    """Strip layout whitespace so no whitespace is left between sibling tags."""
    out = _CONTROL_WS.sub("", document)
    out = _WS_RUN.sub(" ", out)
    out = _BETWEEN_TAGS.sub("><", out)
    return out.strip()


def _element(tag: str, content: str = "") -> str:
    return f"<{tag}>{content}</{tag}>"


def _text(tag: str, value: Optional[str]) -> str:
    return _element(tag, escape_markup(value))


def _number(tag: str, value: Any) -> str:
    return _element(tag, format_value(value))


def _render_section(render: RenderBlock) -> str:
    return _element(
        "render_interface",
        "\n  " + _number("publish_render", render.publish_render)
        + "\n  " + _text("renderer_type_name", render.renderer_type_name) + "\n",
    )


def _thrusters(names: Iterable[str]) -> str:
    return "\n".join(
        _text(f"thrusters{idx}", name) for idx, name in enumerate(names, start=1)
    )


def _physics_section(physics: PhysicsBlock) -> str:
    parts: list[str] = []
    for mode in PHYSICS_MODES:
        cfg = physics.mode(mode)
        if not cfg.enabled:
            continue
        connection = cfg.connection_type.value if cfg.connection_type is not None else ""
        parts.append(
            _element(
                mode.value,
                "\n    " + _text("ConnectionType", connection)
                + "\n    " + _text("uri", cfg.uri)
                + "\n    " + _element("thrusters", "\n" + _thrusters(cfg.thrusters) + "\n")
                + "\n",
            )
        )
    body = "\n".join(parts) + "\n  " + _text("init_state", physics.effective_init_state())
    return _element("physics_engine_interface", "\n" + body + "\n")


def _common_limits(block: WaypointFollowerBlock) -> str:
    return "\n".join(
        [
            _number("loop", block.loop),
            _number("linear_acceleration_limit", block.linear_acc_limit),
            _number("angular_acceleration_limit", block.angular_acc_limit),
            _number("angular_velocity_limit", block.angular_vel_limit),
        ]
    )


def _followers(block: WaypointFollowerBlock) -> list[str]:
    follower = block.follower
    followers: list[str] = []
    # The branches are mutually exclusive: ``follower`` holds a single kind.
    if isinstance(follower, WaypointsFollower) and follower.waypoints:
        points = "".join(
            _element("waypoint", f"{format_value(wp.lat)} {format_value(wp.lng)}")
            for wp in follower.waypoints
        )
        followers.append(
            _element("follower", _common_limits(block) + "\n" + _element("waypoints", points))
        )
    if isinstance(follower, LineFollower):
        line = _number("direction", follower.direction) + _number("length", follower.length)
        followers.append(_element("follower", _common_limits(block) + "\n" + _element("line", line)))
    if isinstance(follower, CircleFollower):
        circle = _number("radius", follower.radius)
        followers.append(_element("follower", _common_limits(block) + "\n" + _element("circle", circle)))
    return followers


def _waypoint_follower_section(block: WaypointFollowerBlock) -> str:
    followers = _followers(block)
    if not followers:
        return ""
    return _element("waypoint_follower", "\n  " + "".join(followers) + "\n")


def serialize(config: VesselSpawnConfig) -> str:
    """Build the normalized ``<lotus_param>`` document for ``config``.

    Pure and total: unset numbers render as ``0`` and unset strings as empty
    content, so any configuration yields a well-formed document.
    """
    sections: list[str] = []
    if config.render.enabled:
        sections.append(_render_section(config.render))
    if config.physics.enabled:
        sections.append(_physics_section(config.physics))
    if config.waypoint_follower.enabled:
        # No follower to emit (no mode, or an empty waypoint list) means no section.
        section = _waypoint_follower_section(config.waypoint_follower)
        if section:
            sections.append(section)
    document = _element(ROOT_TAG, "\n".join(sections))
    return normalize_document(document)


__all__ = ["ROOT_TAG", "escape_markup", "format_value", "normalize_document", "serialize"]
