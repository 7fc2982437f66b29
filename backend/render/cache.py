"""Per-view render cache: icon markup and last-seen structure keys."""

from core.models import EntityCategory

# 24x24 glyph paths, one per category
ICON_PATHS: dict[EntityCategory, str] = {
    EntityCategory.BUILDING: "M12 3L2 12h3v8h14v-8h3L12 3m-3 13h-2v-3h2v3m3 0h-2v-3h2v3m3 0h-2v-3h2v3",
    EntityCategory.SOLAR: "M12,7L17,12H14V16H10V12H7L12,7M12,3L3,12H6V20H18V12H21L12,3Z",
    EntityCategory.GRID: (
        "M18,15H16V17H18M18,11H16V13H18M20,19H12V17H14V15H12V13H14V11H12V9H20M10,7H8V5H10M10,11H8V9H10"
        "M10,15H8V13H10M10,19H8V17H10M6,7H4V5H6M6,11H4V9H6M6,15H4V13H6M6,19H4V17H6M12,7V3H2V21H22V7H12Z"
    ),
    EntityCategory.BATTERY: (
        "M16,20H8V6H16M16.67,4H15V2H9V4H7.33A1.33,1.33 0 0,0 6,5.33V20.67C6,21.4 6.6,22 7.33,22"
        "H16.67A1.33,1.33 0 0,0 18,20.67V5.33C18,4.6 17.4,4 16.67,4Z"
    ),
    EntityCategory.CHARGE_POINT: (
        "M8,3V6H4V8H8V11H10V8H14V6H10V3M11,13V21H13V13M7,13A4,4 0 0,0 3,17V21H5V17A2,2 0 0,1 7,15"
        "A2,2 0 0,1 9,17V21H11V17A4,4 0 0,0 7,13M17,13A4,4 0 0,0 13,17V21H15V17A2,2 0 0,1 17,15"
        "A2,2 0 0,1 19,17V21H21V17A4,4 0 0,0 17,13Z"
    ),
}

ICON_SIZE = 24


class RenderCache:
    """Owned by one graph view; nothing here is module-level state."""

    def __init__(self) -> None:
        self._icons: dict[EntityCategory, str] = {}
        self._structure_keys: dict[str, str] = {}
        self.icon_builds = 0

    def icon_markup(self, category: EntityCategory) -> str:
        markup = self._icons.get(category)
        if markup is None:
            markup = (
                f'<svg viewBox="0 0 24 24" class="node-icon" width="{ICON_SIZE * 2}" height="{ICON_SIZE * 2}"'
                f' x="{-ICON_SIZE}" y="{-ICON_SIZE - 8}" fill="white">'
                f'<path fill="currentColor" d="{ICON_PATHS[category]}"/></svg>'
            )
            self._icons[category] = markup
            self.icon_builds += 1
        return markup

    def structure_changed(self, layer: str, key: str) -> bool:
        """Record ``key`` for ``layer``; True when it differs from the last one seen."""
        changed = self._structure_keys.get(layer) != key
        self._structure_keys[layer] = key
        return changed

    def clear(self) -> None:
        self._icons.clear()
        self._structure_keys.clear()
