"""
Battery icon rendering for the system tray.

Draws a battery glyph whose fill follows the charge level, with a bolt while
charging and an exclamation mark when telemetry is stale.
"""

from PIL import Image, ImageDraw

from power_panel.monitor import TelemetryStatus

NORMAL_COLOR = "#00AA00"
LOW_COLOR = "#DD8800"
CRITICAL_COLOR = "#DD0000"
STALE_COLOR = "#888888"


def create_battery_icon(
    size=(64, 64),
    battery_color=NORMAL_COLOR,
    fill_level=0.9,
    show_alert=False,
    show_bolt=False
) -> Image.Image:
    """
    Create a battery icon with specified parameters.

    Args:
        size: Tuple of (width, height) in pixels
        battery_color: Hex color code for the battery
        fill_level: Float between 0 and 1 representing charge level
        show_alert: Draw a warning symbol
        show_bolt: Draw a charging bolt

    Returns:
        RGBA image
    """
    fill_level = max(0.0, min(1.0, fill_level))

    img = Image.new('RGBA', size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    width, height = size

    # Battery dimensions (with padding)
    padding = 8
    battery_width = width - (2 * padding)
    battery_height = height - (2 * padding) - 4  # Extra space for terminal

    battery_x = padding
    battery_y = padding + 4  # Offset for terminal

    # Terminal (nub on top-right)
    terminal_width = 12
    terminal_height = 4
    terminal_x = battery_x + battery_width - terminal_width - 4
    terminal_y = padding

    draw.rounded_rectangle(
        [terminal_x, terminal_y, terminal_x + terminal_width, terminal_y + terminal_height],
        radius=2,
        fill=battery_color,
        outline=battery_color
    )

    draw.rounded_rectangle(
        [battery_x, battery_y, battery_x + battery_width, battery_y + battery_height],
        radius=4,
        fill=None,
        outline=battery_color,
        width=2
    )

    # Fill level
    fill_padding = 4
    fill_x = battery_x + fill_padding
    fill_y = battery_y + fill_padding
    fill_width = battery_width - (2 * fill_padding)
    fill_height = battery_height - (2 * fill_padding)

    actual_fill_height = int(fill_height * fill_level)
    fill_y_start = fill_y + (fill_height - actual_fill_height)

    if actual_fill_height > 0:
        draw.rounded_rectangle(
            [fill_x, fill_y_start, fill_x + fill_width, fill_y + fill_height],
            radius=2,
            fill=battery_color
        )

    center_x = width // 2
    center_y = height // 2 + 2

    if show_alert:
        draw.rectangle(
            [center_x - 2, center_y - 10, center_x + 2, center_y + 2],
            fill='white'
        )
        draw.ellipse(
            [center_x - 2, center_y + 5, center_x + 2, center_y + 9],
            fill='white'
        )
    elif show_bolt:
        draw.polygon(
            [
                (center_x + 3, center_y - 14),
                (center_x - 7, center_y + 2),
                (center_x - 1, center_y + 2),
                (center_x - 3, center_y + 14),
                (center_x + 7, center_y - 2),
                (center_x + 1, center_y - 2),
            ],
            fill='white',
            outline='black'
        )

    return img


def icon_color(percent: int, stale: bool) -> str:
    if stale:
        return STALE_COLOR
    if percent <= 10:
        return CRITICAL_COLOR
    if percent <= 20:
        return LOW_COLOR
    return NORMAL_COLOR


def render_status_icon(status: TelemetryStatus, size=(64, 64)) -> Image.Image:
    """Render the tray icon for the current telemetry status."""
    snapshot = status.snapshot
    return create_battery_icon(
        size=size,
        battery_color=icon_color(snapshot.battery_percent, status.stale),
        fill_level=snapshot.battery_percent / 100.0,
        show_alert=status.stale,
        show_bolt=snapshot.is_charging
    )


def icon_key(status: TelemetryStatus) -> tuple:
    """Values that change the icon's appearance; redraw only when this changes."""
    snapshot = status.snapshot
    return (snapshot.battery_percent, snapshot.is_charging, status.stale)
