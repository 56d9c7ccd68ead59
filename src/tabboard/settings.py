"""Background customization."""

import random

WALLPAPERS = [
    "https://images.unsplash.com/photo-1477346611705-65d1883cee1e?auto=format&fit=crop&q=80&w=3870&h=2176",  # Mountain
    "https://images.unsplash.com/photo-1507525428034-b723cf961d3e?auto=format&fit=crop&q=80&w=3870&h=2176",  # Ocean
    "https://images.unsplash.com/photo-1441974231531-c6227db76b6e?auto=format&fit=crop&q=80&w=3870&h=2176",  # Forest
    "https://images.unsplash.com/photo-1473580044384-7ba9967e16a0?auto=format&fit=crop&q=80&w=3870&h=2176",  # Desert
    "https://images.unsplash.com/photo-1531366936337-7c912a4589a7?auto=format&fit=crop&q=80&w=3870&h=2176",  # Aurora
    "https://images.unsplash.com/photo-1494438639946-1ebd1d20bf85?auto=format&fit=crop&q=80&w=3870&h=2176",  # Minimal
    "https://images.unsplash.com/photo-1518173946687-a4c8892bbd9f?auto=format&fit=crop&q=80&w=3870&h=2176",  # Foggy Forest
    "https://images.unsplash.com/photo-1506260408121-e353d10b87c7?auto=format&fit=crop&q=80&w=3870&h=2176",  # Hills
    "https://images.unsplash.com/photo-1439853949127-fa647821eba0?auto=format&fit=crop&q=80&w=3870&h=2176",  # Peaks
]

MODES = ("random", "static")

DEFAULT_SETTINGS = {
    "background_mode": "random",
    "background_url": WALLPAPERS[0],
}


def normalize_settings(data):
    """Merge ``data`` over the defaults; raise ValueError on a bad mode."""
    if not isinstance(data, dict):
        raise ValueError("settings must be an object")
    out = dict(DEFAULT_SETTINGS)
    mode = data.get("background_mode", out["background_mode"])
    if mode not in MODES:
        raise ValueError(f"background_mode must be one of {', '.join(MODES)}")
    out["background_mode"] = mode
    url = (data.get("background_url") or "").strip()
    if url:
        out["background_url"] = url
    return out


def random_wallpaper(exclude=None, rng=random):
    choices = [w for w in WALLPAPERS if w != exclude] or WALLPAPERS
    return rng.choice(choices)


def resolve_background(settings, rng=random):
    """Settings to use for a new tab: random mode rolls a different wallpaper."""
    settings = normalize_settings(settings)
    if settings["background_mode"] == "random":
        settings["background_url"] = random_wallpaper(settings["background_url"], rng)
    return settings
