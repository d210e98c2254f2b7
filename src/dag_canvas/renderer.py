"""Preview renderer using Pillow — draws a laid-out pipeline graph to PNG."""

from __future__ import annotations

import math
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from .engine import compute_layout
from .models import Edge, LayoutOptions, Node, PipelineGraph, ViewSize
from .themes import ThemePalette, get_theme
from .viewport import compute_bounds, fit_to_viewport


# Pixel box of a node in image space: (x, y, width, height)
Box = tuple[float, float, float, float]


# --- Font handling ---

def _load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a font, falling back to default if none available."""
    font_paths = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
    ]
    for fp in font_paths:
        if Path(fp).exists():
            return ImageFont.truetype(fp, size)
    return ImageFont.load_default()


def _load_bold_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a bold font, falling back to regular."""
    font_paths = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "/usr/share/fonts/truetype/freefont/FreeSansBold.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
    ]
    for fp in font_paths:
        if Path(fp).exists():
            return ImageFont.truetype(fp, size)
    return _load_font(size)


# --- Color helpers ---

def _hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Convert hex color to RGB tuple. Supports both 3-char and 6-char hex."""
    hex_color = hex_color.lstrip("#")
    if len(hex_color) == 3:
        hex_color = hex_color[0]*2 + hex_color[1]*2 + hex_color[2]*2
    return tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))


def _hex_to_rgba(hex_color: str, alpha: int = 255) -> tuple[int, int, int, int]:
    r, g, b = _hex_to_rgb(hex_color)
    return (r, g, b, alpha)


def _darken(hex_color: str, factor: float = 0.6) -> str:
    r, g, b = _hex_to_rgb(hex_color)
    return f"#{int(r * factor):02x}{int(g * factor):02x}{int(b * factor):02x}"


def _lighten(hex_color: str, factor: float = 0.3) -> str:
    """Lighten a hex color by blending toward white.

    factor=0.0 returns the original color, factor=1.0 returns white.
    """
    r, g, b = _hex_to_rgb(hex_color)
    r = int(r + (255 - r) * factor)
    g = int(g + (255 - g) * factor)
    b = int(b + (255 - b) * factor)
    return f"#{r:02x}{g:02x}{b:02x}"


# --- Drawing primitives ---

def _draw_arrow(
    draw: ImageDraw.ImageDraw,
    start: tuple[float, float],
    end: tuple[float, float],
    color: str = "#585b70",
    width: int = 2,
    arrow_size: int = 10,
):
    """Draw a line with an arrowhead."""
    draw.line([start, end], fill=color, width=width)

    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length = math.sqrt(dx * dx + dy * dy)
    if length == 0:
        return

    udx = dx / length
    udy = dy / length

    ax = end[0] - arrow_size * udx + (arrow_size / 2) * udy
    ay = end[1] - arrow_size * udy - (arrow_size / 2) * udx
    bx = end[0] - arrow_size * udx - (arrow_size / 2) * udy
    by = end[1] - arrow_size * udy + (arrow_size / 2) * udx

    draw.polygon([(end[0], end[1]), (ax, ay), (bx, by)], fill=color)


def _fit_text(text: str, font: ImageFont.FreeTypeFont, max_width: float) -> str:
    """Truncate text with an ellipsis so it fits within max_width pixels."""
    if _text_width(text, font) <= max_width:
        return text
    while text and _text_width(text + "...", font) > max_width:
        text = text[:-1]
    return text + "..." if text else ""


def _text_width(text: str, font: ImageFont.FreeTypeFont) -> float:
    bbox = font.getbbox(text)
    return bbox[2] - bbox[0]


# --- Main renderer ---

class GraphRenderer:
    """Renders a PipelineGraph to a PNG image."""

    # Layout constants
    PADDING = 60
    TITLE_HEIGHT = 60
    NODE_PADDING = 14
    NODE_TOP_BAR = 6
    CORNER_RADIUS = 12
    BORDER_WIDTH = 3

    def __init__(self, scale: float = 1.0, theme: str = "dark"):
        self.scale = scale
        self.theme: ThemePalette = get_theme(theme)
        self.font_label = _load_bold_font(max(1, int(18 * scale)))
        self.font_title = _load_bold_font(max(1, int(28 * scale)))
        self.font_small = _load_font(max(1, int(13 * scale)))

    def render(
        self,
        graph: PipelineGraph,
        output_path: Optional[str] = None,
        auto_layout: bool = True,
        view_size: Optional[ViewSize] = None,
    ) -> bytes:
        """Render the graph to PNG bytes. Optionally save to file.

        Args:
            graph: The graph to render.  Not modified.
            output_path: Optional path to save the PNG.
            auto_layout: If True, run ``compute_layout`` first; otherwise draw
                         nodes where they are.
            view_size: If given, the layout is fitted into this area and the
                       image has exactly this size (times ``scale``).
                       Otherwise the image grows to the layout's bounds.
        """
        options = graph.layout
        nodes = list(graph.nodes)
        if auto_layout:
            nodes = compute_layout(nodes, graph.edges, options)

        box_scale = 1.0
        if view_size is not None:
            fitted = fit_to_viewport(
                nodes,
                view_size,
                node_width=options.node_width,
                node_height=options.node_height,
            )
            nodes = fitted.nodes
            box_scale = fitted.scale
            width, height = view_size.width, view_size.height
            ox, oy = 0.0, 0.0
        else:
            bounds = self._calculate_bounds(nodes, options)
            width, height = bounds["width"], bounds["height"]
            ox, oy = -bounds["min_x"], -bounds["min_y"]

        img_width = max(1, int(width * self.scale))
        img_height = max(1, int(height * self.scale))
        img = Image.new("RGBA", (img_width, img_height), _hex_to_rgba(self.theme.background))
        draw = ImageDraw.Draw(img)

        self._draw_title(draw, graph.title, img_width)
        if not nodes:
            self._draw_placeholder(draw, img_width, img_height)

        boxes: dict[str, Box] = {
            node.id: (
                (node.position.x + ox) * self.scale,
                (node.position.y + oy) * self.scale,
                options.node_width * box_scale * self.scale,
                options.node_height * box_scale * self.scale,
            )
            for node in nodes
        }
        by_id = {node.id: node for node in nodes}

        # Connections first (behind nodes)
        self._draw_connections(draw, graph.edges, by_id, boxes)

        for node in nodes:
            self._draw_node(draw, node, boxes[node.id])

        buf = BytesIO()
        img.save(buf, format="PNG", optimize=True)
        png_bytes = buf.getvalue()

        if output_path:
            Path(output_path).write_bytes(png_bytes)

        return png_bytes

    def _calculate_bounds(self, nodes: list[Node], options: LayoutOptions) -> dict:
        """Bounding box of all nodes plus padding and room for the title."""
        bounds = compute_bounds(nodes, options.node_width, options.node_height)
        if bounds is None:
            return {"min_x": 0, "min_y": 0, "width": 400, "height": 300}

        min_x, min_y, max_x, max_y = bounds
        min_x -= self.PADDING
        min_y -= self.PADDING + self.TITLE_HEIGHT
        max_x += self.PADDING
        max_y += self.PADDING

        return {
            "min_x": min_x,
            "min_y": min_y,
            "width": max_x - min_x,
            "height": max_y - min_y,
        }

    def _draw_title(self, draw: ImageDraw.ImageDraw, title: str, img_width: int):
        """Draw the graph title centered at the top."""
        tw = _text_width(title, self.font_title)
        x = (img_width - tw) / 2
        draw.text((x, 15 * self.scale), title, fill=self.theme.title_color, font=self.font_title)

    def _draw_placeholder(self, draw: ImageDraw.ImageDraw, img_width: int, img_height: int):
        text = "No nodes"
        tw = _text_width(text, self.font_small)
        draw.text(
            ((img_width - tw) / 2, img_height / 2),
            text,
            fill=self.theme.muted_text_color,
            font=self.font_small,
        )

    @staticmethod
    def _determine_port(source: Box, target: Box) -> tuple[str, str]:
        """Pick connection ports from the relative position of two boxes.

        If the target center is more than 1.5× the source height away
        vertically and the vertical distance dominates, the connector uses
        top/bottom ports; otherwise it runs between the side ports.

        Returns (from_port, to_port) with ports 'left', 'right', 'top', 'bottom'.
        """
        sx, sy, sw, sh = source
        tx, ty, tw, th = target
        dx = (tx + tw / 2) - (sx + sw / 2)
        dy = (ty + th / 2) - (sy + sh / 2)

        if abs(dy) > sh * 1.5 and abs(dy) > abs(dx):
            return ("bottom", "top") if dy > 0 else ("top", "bottom")
        return ("right", "left") if dx >= 0 else ("left", "right")

    @staticmethod
    def _port_point(box: Box, port: str) -> tuple[float, float]:
        x, y, w, h = box
        if port == "left":
            return (x, y + h / 2)
        if port == "top":
            return (x + w / 2, y)
        if port == "bottom":
            return (x + w / 2, y + h)
        return (x + w, y + h / 2)

    def _draw_connections(
        self,
        draw: ImageDraw.ImageDraw,
        edges: list[Edge],
        by_id: dict[str, Node],
        boxes: dict[str, Box],
    ):
        """Draw every edge whose endpoints are both on the canvas.

        Self-loops are skipped; the connector color is the lightened accent
        of the source node's type, or the theme's base connector color for
        types without an accent.
        """
        for edge in edges:
            if edge.source == edge.target:
                continue
            if edge.source not in boxes or edge.target not in boxes:
                continue

            source_box = boxes[edge.source]
            target_box = boxes[edge.target]
            from_port, to_port = self._determine_port(source_box, target_box)
            start = self._port_point(source_box, from_port)
            end = self._port_point(target_box, to_port)

            accent = self.theme.accents.get(by_id[edge.source].type)
            color = _lighten(accent, 0.25) if accent else self.theme.connection_base
            direction = "vertical" if from_port in ("top", "bottom") else "horizontal"
            self._draw_bezier_connection(draw, start, end, color, direction=direction)

    def _draw_bezier_connection(
        self,
        draw: ImageDraw.ImageDraw,
        start: tuple[float, float],
        end: tuple[float, float],
        color: str,
        width: int = 3,
        direction: str = "horizontal",
    ):
        """Draw an S-curve between two ports, control points extending along
        the connector's direction, with an arrowhead at the end."""
        sx, sy = start
        ex, ey = end

        if direction == "vertical":
            cp_offset = max(abs(ey - sy) * 0.4, 40 * self.scale)
            cp1x, cp1y = sx, sy + (cp_offset if ey > sy else -cp_offset)
            cp2x, cp2y = ex, ey - (cp_offset if ey > sy else -cp_offset)
        else:
            cp_offset = max(abs(ex - sx) * 0.4, 40 * self.scale)
            cp1x, cp1y = sx + (cp_offset if ex > sx else -cp_offset), sy
            cp2x, cp2y = ex - (cp_offset if ex > sx else -cp_offset), ey

        points = []
        steps = 30
        for i in range(steps + 1):
            t = i / steps
            x = (1-t)**3 * sx + 3*(1-t)**2*t * cp1x + 3*(1-t)*t**2 * cp2x + t**3 * ex
            y = (1-t)**3 * sy + 3*(1-t)**2*t * cp1y + 3*(1-t)*t**2 * cp2y + t**3 * ey
            points.append((x, y))

        for i in range(len(points) - 1):
            draw.line([points[i], points[i+1]], fill=color, width=width)

        _draw_arrow(draw, points[-2], points[-1], color=color, width=width, arrow_size=int(14 * self.scale))

    def _draw_node(self, draw: ImageDraw.ImageDraw, node: Node, box: Box):
        """Draw a node: rounded box, accent bar, label and type badge."""
        x, y, w, h = box
        s = self.scale
        accent = self.theme.accent_for(node.type)
        radius = int(self.CORNER_RADIUS * s)

        draw.rounded_rectangle(
            [x, y, x + w, y + h],
            radius=radius,
            fill=self.theme.node_fill,
            outline=accent,
            width=max(1, int(self.BORDER_WIDTH * s)),
        )

        # Type indicator bar at top
        bar_height = int(self.NODE_TOP_BAR * s)
        if w > 4:
            draw.rounded_rectangle(
                [x + 2, y + 2, x + w - 2, y + bar_height + 2],
                radius=radius,
                fill=accent,
            )

        pad = self.NODE_PADDING * s
        label = _fit_text(node.get_label(), self.font_label, w - 2 * pad)
        draw.text(
            (x + pad, y + bar_height + pad),
            label,
            fill=self.theme.label_color,
            font=self.font_label,
        )

        # Type badge in bottom-right
        badge_w = _text_width(node.type, self.font_small) + 12
        bbox = self.font_small.getbbox(node.type)
        badge_h = bbox[3] - bbox[1] + 6
        badge_x = x + w - badge_w - 8 * s
        badge_y = y + h - badge_h - 8 * s
        if badge_x > x and badge_y > y + bar_height:
            draw.rounded_rectangle(
                [badge_x, badge_y, badge_x + badge_w, badge_y + badge_h],
                radius=4,
                fill=_darken(accent, 0.3),
            )
            draw.text((badge_x + 6, badge_y + 2), node.type, fill=accent, font=self.font_small)
