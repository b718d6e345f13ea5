from typing import Any, Dict

from .GraphPrimitives import Point

MIN_ZOOM = 0.2
MAX_ZOOM = 2.0

# One wheel notch (deltaY = 100) changes the zoom by 0.1.
WHEEL_ZOOM_SPEED = 0.001


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))


class Viewport:
    """
    Translation + uniform scale from canvas space to screen space:

        screen = canvas * zoom + (x, y)
    """

    def __init__(self, x: float = 0.0, y: float = 0.0, zoom: float = 1.0):
        self.x = float(x)
        self.y = float(y)
        self.zoom = clamp_zoom(float(zoom))

    def to_canvas(self, screen_point: Any) -> Point:
        p = Point.of(screen_point)
        return Point((p.x - self.x) / self.zoom, (p.y - self.y) / self.zoom)

    def to_screen(self, canvas_point: Any) -> Point:
        p = Point.of(canvas_point)
        return Point(p.x * self.zoom + self.x, p.y * self.zoom + self.y)

    def pan(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy

    def zoom_at(self, screen_point: Any, delta_zoom: float) -> None:
        """Zoom by `delta_zoom` keeping the canvas point under `screen_point` fixed."""
        p = Point.of(screen_point)
        anchor = self.to_canvas(p)

        self.zoom = clamp_zoom(self.zoom + delta_zoom)
        self.x = p.x - anchor.x * self.zoom
        self.y = p.y - anchor.y * self.zoom

    def wheel(self, screen_point: Any, delta_y: float) -> None:
        self.zoom_at(screen_point, -delta_y * WHEEL_ZOOM_SPEED)

    def reset(self) -> None:
        self.x, self.y, self.zoom = 0.0, 0.0, 1.0

    def as_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "zoom": self.zoom}

    def __repr__(self):
        return f"Viewport(x={self.x:.2f}, y={self.y:.2f}, zoom={self.zoom:.3f})"
