"""Geometry utilities for the loading plan: grid placements, layers, overlap checks."""

from __future__ import annotations

from typing import Iterator

from container_calculator.models import ArrangementResult, Placement

# Rendering payloads stay small; the full count is always reported separately
MAX_RENDERED_PLACEMENTS = 2000


def boxes_overlap(
    a: tuple[float, float, float, float, float, float],
    b: tuple[float, float, float, float, float, float],
) -> bool:
    """
    Axis-aligned bounding box (AABB) overlap test.

    a, b are bounds: (x1, y1, z1, x2, y2, z2)

    Overlap exists only if they overlap on ALL 3 axes with positive volume.
    Touching faces/edges (ax2 == bx1) is NOT considered overlap.
    """
    ax1, ay1, az1, ax2, ay2, az2 = a
    bx1, by1, bz1, bx2, by2, bz2 = b

    return (ax1 < bx2 and ax2 > bx1) and (ay1 < by2 and ay2 > by1) and (az1 < bz2 and az2 > bz1)


def placement_bounds(p: Placement) -> tuple[float, float, float, float, float, float]:
    L, W, H = p.rotation
    return (p.x, p.y, p.z, p.x + L, p.y + W, p.z + H)


def grid_slots(arrangement: ArrangementResult) -> Iterator[tuple[int, int, int]]:
    """
    Yield (i, j, k) grid slots in loading order, at most effective_max_boxes of them.

    Loading order: back wall to door along the length; within a length slot, floor
    up, then across the width.
    """
    remaining = arrangement.effective_max_boxes
    for i in range(arrangement.length_count):
        for k in range(arrangement.height_count):
            for j in range(arrangement.width_count):
                if remaining <= 0:
                    return
                remaining -= 1
                yield i, j, k


def grid_placements(arrangement: ArrangementResult, limit: int = MAX_RENDERED_PLACEMENTS) -> list[Placement]:
    L, W, H = arrangement.box_dims_cm
    placements: list[Placement] = []
    for n, (i, j, k) in enumerate(grid_slots(arrangement)):
        if n >= limit:
            break
        placements.append(Placement(
            box_id=f"BOX_{n + 1:05d}",
            x=round(i * L, 4),
            y=round(j * W, 4),
            z=round(k * H, 4),
            rotation=(L, W, H),
        ))
    return placements


def layer_distribution(arrangement: ArrangementResult) -> dict[str, object]:
    """Boxes and weight per height layer, plus the loaded centre of gravity along the length."""
    L = arrangement.box_dims_cm[0]
    width_count = arrangement.width_count
    height_count = arrangement.height_count
    count = arrangement.effective_max_boxes
    per_slice = width_count * height_count

    # Same order as grid_slots: whole length slices first, then one partial slice
    # filled layer by layer from the floor.
    full, rest = divmod(count, per_slice) if per_slice else (0, 0)
    per_layer = [full * width_count] * height_count
    if rest:
        filled_layers, last_row = divmod(rest, width_count)
        for k in range(filled_layers):
            per_layer[k] += width_count
        if last_row:
            per_layer[filled_layers] += last_row

    # Sum of slice centres i*L + L/2 over the full slices, plus the partial slice
    sum_x = per_slice * L * full * full / 2.0 + rest * L * (full + 0.5)

    layers = [
        {
            "layer": k + 1,
            "boxes": n,
            "weight_kg": round(n * arrangement.box_weight_kg, 3),
        }
        for k, n in enumerate(per_layer)
    ]
    return {
        "layers": layers,
        "center_of_gravity_length_cm": round(sum_x / count, 2) if count else None,
    }
