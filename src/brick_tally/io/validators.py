"""Validation rules for parts-catalog manifest entries."""

REQUIRED_TEXT_FIELDS = ("part_num", "part_name", "color_name")


def _as_int(value):
    if isinstance(value, bool):
        raise TypeError("boolean is not an integer")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError("not a whole number")
    return int(value)


def validate_manifest_entry(entry, index: int) -> list[str]:
    """Validate one raw manifest entry. Returns list of error strings."""
    if not isinstance(entry, dict):
        return [f"Entry {index}: expected a mapping, got {type(entry).__name__}"]

    errors = []

    for name in REQUIRED_TEXT_FIELDS:
        value = entry.get(name)
        if value is None or not str(value).strip():
            errors.append(f"Entry {index}: {name} is required")

    color_id = entry.get("color_id")
    if color_id is None or color_id == "":
        errors.append(f"Entry {index}: color_id is required")
    else:
        try:
            _as_int(color_id)
        except (ValueError, TypeError):
            errors.append(f"Entry {index}: color_id must be an integer")

    qty = entry.get("qty_needed")
    if qty is None or qty == "":
        errors.append(f"Entry {index}: qty_needed is required")
    else:
        try:
            if _as_int(qty) < 0:
                errors.append(f"Entry {index}: qty_needed cannot be negative")
        except (ValueError, TypeError):
            errors.append(f"Entry {index}: qty_needed must be an integer")

    spare = entry.get("is_spare", False)
    if spare is not None and not isinstance(spare, bool) \
            and spare not in (0, 1, "0", "1", "true", "false"):
        errors.append(f"Entry {index}: is_spare must be a boolean")

    return errors


def normalize_manifest_entry(entry: dict) -> dict:
    """Coerce an already-validated entry into the strict line-item shape."""
    spare = entry.get("is_spare", False)
    if isinstance(spare, str):
        spare = spare in ("1", "true")
    category = entry.get("category")
    element_id = entry.get("element_id")
    return {
        "part_num": str(entry["part_num"]).strip(),
        "part_name": str(entry["part_name"]).strip(),
        "part_img_url": entry.get("part_img_url") or None,
        "color_id": _as_int(entry["color_id"]),
        "color_name": str(entry["color_name"]).strip(),
        "color_rgb": str(entry.get("color_rgb") or "").strip(),
        "element_id": str(element_id) if element_id not in (None, "") else None,
        "category": str(category) if category not in (None, "") else None,
        "qty_needed": _as_int(entry["qty_needed"]),
        "is_spare": bool(spare),
    }
