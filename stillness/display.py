"""
Stillness - Display

Page layouts for the collapsed badge and the expanded practice view, and
the cached boundary to whatever renders them (glasses over BLE, a test
double, a console).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Tuple

from . import config as cfg
from .breath import center, fmt_clock, fmt_mmss
from .config import SessionConfig
from .exceptions import StartupError
from .fade import FadeStage

logger = logging.getLogger(__name__)

BLANK = "\u2800"  # braille blank: invisible but non-empty


@dataclass(frozen=True)
class Region:
    """One rectangle on the canvas: a text region, or a list when items is set"""
    id: int
    name: str
    x: int
    y: int
    width: int
    height: int
    border_width: int = 0
    border_color: int = cfg.COLOR_NONE
    border_radius: int = 0
    padding: int = 0
    content: str = ""
    captures_events: bool = False
    items: Optional[Tuple[str, ...]] = None

    @property
    def is_list(self) -> bool:
        return self.items is not None

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "xPosition": self.x,
            "yPosition": self.y,
            "width": self.width,
            "height": self.height,
            "borderWidth": self.border_width,
            "borderColor": self.border_color,
            "borderRadius": self.border_radius,
            "paddingLength": self.padding,
            "containerID": self.id,
            "containerName": self.name,
            "isEventCapture": int(self.captures_events),
        }
        if self.is_list:
            payload["itemContainer"] = {
                "itemCount": len(self.items),
                "itemWidth": 0,
                "isItemSelectBorderEn": 0,
                "itemName": list(self.items),
            }
        else:
            payload["content"] = self.content
        return payload


@dataclass(frozen=True)
class Page:
    """Full description of everything visible in one UI mode"""
    regions: Tuple[Region, ...] = field(default_factory=tuple)

    @property
    def lists(self) -> Tuple[Region, ...]:
        return tuple(r for r in self.regions if r.is_list)

    @property
    def texts(self) -> Tuple[Region, ...]:
        return tuple(r for r in self.regions if not r.is_list)

    def region(self, region_id: int) -> Optional[Region]:
        for r in self.regions:
            if r.id == region_id:
                return r
        return None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "containerTotalNum": len(self.regions),
            "listObject": [r.to_payload() for r in self.lists],
            "textObject": [r.to_payload() for r in self.texts],
        }


class Renderer(Protocol):
    """What the engine needs from a display device"""

    async def create_page(self, page: Page) -> int:
        """Create the first page; 0 means success"""
        ...

    async def rebuild_page(self, page: Page) -> None:
        ...

    async def update_text(self, region_id: int, region_name: str, content: str) -> None:
        ...

    async def shutdown(self) -> None:
        ...


class Display:
    """
    Renderer wrapper with per-region content caching

    Only the first page creation may fail loudly (StartupError). After
    that, render failures are logged and dropped; the next tick retries
    with fresh content.
    """

    def __init__(self, renderer: Renderer):
        self.renderer = renderer
        self.ready = False
        self._last: Dict[int, str] = {}

    async def show(self, page: Page) -> None:
        """Create or rebuild the full page"""
        if not self.ready:
            try:
                result = await self.renderer.create_page(page)
            except Exception as e:
                raise StartupError(f"Page creation failed: {e}") from e
            if result != 0:
                raise StartupError(f"Page creation failed: {result}")
            self.ready = True
        else:
            try:
                await self.renderer.rebuild_page(page)
            except Exception as e:
                logger.warning("Page rebuild failed: %s", e)
        self.reset_cache()

    async def push_text(self, region_id: int, region_name: str, content: str) -> bool:
        """
        Update one region's text unless it already shows exactly that

        Returns:
            True if an update was sent and accepted
        """
        if not self.ready:
            return False
        if self._last.get(region_id) == content:
            return False
        try:
            await self.renderer.update_text(region_id, region_name, content)
        except Exception as e:
            logger.warning("Text update for %s failed: %s", region_name, e)
            return False
        self._last[region_id] = content
        return True

    def reset_cache(self) -> None:
        self._last.clear()

    async def shutdown(self) -> None:
        try:
            await self.renderer.shutdown()
        except Exception as e:
            logger.warning("Renderer shutdown failed: %s", e)


# -----------------------------------------------------------------------------
# Text
# -----------------------------------------------------------------------------

def badge_text(total_seconds: int) -> str:
    return "\n".join([
        center("STILLNESS", cfg.BADGE_COLS),
        center(f"·{fmt_mmss(total_seconds)}·", cfg.BADGE_COLS),
        center("Tap to begin", cfg.BADGE_COLS),
    ])


def header_text(
    session: SessionConfig,
    clock_seconds: int,
    show_hint: bool = False,
    debug_text: str = "",
) -> str:
    """STILLNESS · <session>[ · i-h-e] · <clock>, plus an optional debug line"""
    hint = f" · {session.pattern}" if show_hint else ""
    line = center(f"STILLNESS · {session.name}{hint} · {fmt_clock(clock_seconds)}", cfg.HEADER_COLS)
    if debug_text:
        return f"{line}\n{center(debug_text, cfg.HEADER_COLS)}"
    return line


# -----------------------------------------------------------------------------
# Layouts
# -----------------------------------------------------------------------------

def _frame(x: int, width: int, stage: FadeStage = FadeStage.NORMAL) -> Region:
    if stage >= FadeStage.OFF:
        border = dict(border_width=0, border_color=cfg.COLOR_NONE, border_radius=0)
    else:
        color = cfg.COLOR_DIM if stage == FadeStage.DIM else cfg.COLOR_NORMAL
        border = dict(border_width=1, border_color=color, border_radius=cfg.BORDER_RADIUS)
    return Region(cfg.FRAME_ID, cfg.FRAME_NAME, x, cfg.CARD_Y, width, cfg.CARD_H, **border)


def _debug(x: int) -> Region:
    return Region(
        cfg.DEBUG_ID, cfg.DEBUG_NAME,
        x + 8, cfg.CANVAS_H - 60, cfg.DEBUG_W, cfg.DEBUG_H,
    )


def collapsed_page(total_seconds: int, debug: bool = False) -> Page:
    """Right-anchored card with the daily badge; a blank list catches taps"""
    x = cfg.CANVAS_W - cfg.COLLAPSED_W
    width = cfg.COLLAPSED_W
    catcher = Region(
        cfg.LIST_ID, cfg.LIST_NAME, x, cfg.CARD_Y, width, cfg.CARD_H,
        captures_events=True, items=(BLANK,),
    )
    badge = Region(
        cfg.BADGE_ID, cfg.BADGE_NAME,
        x + (width - cfg.BADGE_W) // 2,
        (cfg.CANVAS_H - cfg.BADGE_H) // 2,
        cfg.BADGE_W, cfg.BADGE_H,
        content=badge_text(total_seconds),
    )
    regions = [catcher, _frame(x, width), badge]
    if debug:
        regions.append(_debug(x))
    return Page(tuple(regions))


def expanded_page(
    header: str,
    breath: str,
    header_stage: FadeStage = FadeStage.NORMAL,
    frame_stage: FadeStage = FadeStage.NORMAL,
    debug: bool = False,
) -> Page:
    """Full canvas: frame, header and the borderless breath region"""
    header_off = header_stage >= FadeStage.OFF
    if header_off:
        header_region = Region(
            cfg.HEADER_ID, cfg.HEADER_NAME,
            cfg.HEADER_X, cfg.HEADER_Y, cfg.HEADER_W, 1,
        )
    else:
        header_region = Region(
            cfg.HEADER_ID, cfg.HEADER_NAME,
            cfg.HEADER_X, cfg.HEADER_Y, cfg.HEADER_W, cfg.HEADER_H,
            border_width=1,
            border_color=cfg.COLOR_DIM if header_stage == FadeStage.DIM else cfg.COLOR_NORMAL,
            border_radius=cfg.BORDER_RADIUS,
            padding=cfg.HEADER_PAD,
            content=header,
        )
    breath_region = Region(
        cfg.BREATH_ID, cfg.BREATH_NAME,
        cfg.BREATH_X, cfg.BREATH_Y, cfg.BREATH_W, cfg.BREATH_H,
        padding=cfg.BREATH_PAD,
        content=breath,
        captures_events=True,
    )
    regions = [_frame(0, cfg.EXPANDED_W, frame_stage), header_region, breath_region]
    if debug:
        regions.append(_debug(0))
    return Page(tuple(regions))
