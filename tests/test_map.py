from __future__ import annotations

import asyncio

import pytest

from lotusdash.core.spawn_config import VesselSpawnConfig
from lotusdash.core.types import LatLongPosition, VesselData
from lotusdash.map import ContainerBounds, MapView, build_icon, build_marker, icon_size
from lotusdash.map.markers import ICON_ANCHOR, ICON_ASPECT, POPUP_ANCHOR
from lotusdash.map.view import ADD_VESSEL, CANCEL


def _vessel(name: str, heading: float = 90.0, info=None) -> VesselData:
    return VesselData(
        vessel_name=name,
        pose=LatLongPosition(latitude=1.24, longitude=103.71, heading=heading),
        additionalInfo=info,
    )


def test_icon_size_scales_with_zoom() -> None:
    assert icon_size(0) == (0.5, 0.8125)
    assert icon_size(10) == (10.5, 17.0625)
    for zoom in (0, 3, 15, 22):
        width, height = icon_size(zoom)
        assert height == pytest.approx(width * ICON_ASPECT)


def test_icons_are_cached_per_zoom_and_heading() -> None:
    build_icon.cache_clear()
    first = build_icon(12.0, 45.0)
    assert build_icon(12.0, 45.0) is first
    assert build_icon(12.0, 46.0) is not first
    assert build_icon.cache_info().hits == 1
    assert first.anchor == ICON_ANCHOR
    assert first.popup_anchor == POPUP_ANCHOR


def test_icon_html_rotates_around_center() -> None:
    html = build_icon(10.0, 90.0).html
    assert "rotate(90" in html
    assert "transform-origin: center center" in html
    assert "width:10.5px" in html


def test_marker_popup() -> None:
    marker = build_marker(_vessel("v1"), 10.0)
    assert marker.popup_lines() == [
        "Vessel: v1",
        "Latitude: 1.24",
        "Longitude: 103.71",
        "No additional info",
    ]
    towing = build_marker(_vessel("v2", info="towing barge"), 10.0)
    assert towing.popup_lines()[-1] == "towing barge"


def test_update_replaces_markers() -> None:
    view = MapView(zoom=10)
    view.update([_vessel("a"), _vessel("b")])
    assert [m.vessel_name for m in view.markers] == ["a", "b"]
    # Same zoom and heading share one icon.
    assert view.markers[0].icon is view.markers[1].icon

    view.update([_vessel("c", heading=180.0)])
    assert [m.vessel_name for m in view.markers] == ["c"]
    assert view.markers[0].icon.rotation_deg == 180.0

    view.update([])
    assert view.markers == []


def test_zoom_is_clamped_and_resizes_markers() -> None:
    view = MapView(zoom=10, max_zoom=22)
    view.update([_vessel("a")])
    before = view.markers
    view.set_zoom(10)
    assert view.markers is before

    view.set_zoom(40)
    assert view.zoom == 22.0
    assert view.markers[0].icon.width == 22.5
    view.set_zoom(-3)
    assert view.zoom == 0.0
    assert view.markers[0].icon.size == (0.5, 0.8125)


def test_right_click_offsets_menu_by_container() -> None:
    view = MapView()
    menu = view.right_click(1.3, 103.8, 300, 250, ContainerBounds(left=100, top=50))
    assert (menu.x, menu.y) == (200, 200)
    assert menu.items == (ADD_VESSEL, CANCEL)
    assert view.context_menu is menu


def test_right_click_without_container_does_nothing() -> None:
    view = MapView()
    assert view.right_click(1.3, 103.8, 300, 250, None) is None
    assert view.context_menu is None


def test_add_vessel_seeds_dialog_from_click() -> None:
    view = MapView()
    view.right_click(1.3, 103.8, 300, 250, ContainerBounds(left=0, top=0))
    dialog = view.choose(ADD_VESSEL)
    assert view.spawn_dialog is dialog
    assert view.context_menu is None
    assert dialog.position.latitude == 1.3
    assert dialog.position.longitude == 103.8
    assert dialog.position.elevation == 0.0
    assert dialog.position.heading == 0.0


def test_cancel_closes_menu() -> None:
    view = MapView()
    view.right_click(1.3, 103.8, 300, 250, ContainerBounds(left=0, top=0))
    assert view.choose(CANCEL) is None
    assert view.context_menu is None
    assert view.spawn_dialog is None
    with pytest.raises(ValueError):
        view.choose("Delete")


def test_submit_spawn_hands_dialog_to_handler() -> None:
    received: list[VesselSpawnConfig] = []

    async def handler(config: VesselSpawnConfig) -> str:
        received.append(config)
        return "ok"

    view = MapView(on_spawn=handler)
    view.right_click(1.3, 103.8, 0, 0, ContainerBounds(left=0, top=0))
    dialog = view.choose(ADD_VESSEL)
    dialog.vessel_name = "v9"

    assert asyncio.run(view.submit_spawn()) == "ok"
    assert received == [dialog]
    assert view.spawn_dialog is None


def test_submit_spawn_failure_closes_dialog_and_reraises() -> None:
    async def handler(config: VesselSpawnConfig) -> None:
        raise RuntimeError("backend down")

    view = MapView(on_spawn=handler)
    view.open_spawn_dialog()
    with pytest.raises(RuntimeError, match="backend down"):
        asyncio.run(view.submit_spawn())
    assert view.spawn_dialog is None


def test_submit_spawn_requires_dialog_and_handler() -> None:
    view = MapView()
    with pytest.raises(ValueError):
        asyncio.run(view.submit_spawn())
    view.open_spawn_dialog()
    with pytest.raises(RuntimeError):
        asyncio.run(view.submit_spawn())
