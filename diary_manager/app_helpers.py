MIN_AUTOSAVE_MS = 1_000


def normalize_theme(name: str) -> str:
    name = (name or "").strip().lower()
    return name if name in ("dark", "light") else "light"


def normalize_autosave_ms(value: int | str, default: int) -> int:
    try:
        ms = int(value)
    except (TypeError, ValueError):
        return default
    return ms if ms >= MIN_AUTOSAVE_MS else default
