"""Progress-arc geometry for gauge indicators."""

from ontrack.domain.tracking import GaugeBand, ProgressArc

ANGLE_MAX = 160.0
_LEVEL_HALF_WIDTH = 0.1


def progress_arc(rel_proportion: float, angle_max: float = ANGLE_MAX) -> ProgressArc:
    """Map a gauge proportion to an arc either side of the zero point.

    The angle is clamped to ``angle_max``; a clamped arc is drawn in the
    ``FAR_*`` band. A level reading gets a sliver so something is visible.
    """
    angle = max(-angle_max, min(angle_max, rel_proportion * angle_max))
    if rel_proportion < 0:
        band = GaugeBand.FAR_BEHIND if angle <= -angle_max else GaugeBand.BEHIND
        return ProgressArc(start_angle=angle, end_angle=0.0, band=band)
    if rel_proportion > 0:
        band = GaugeBand.FAR_AHEAD if angle >= angle_max else GaugeBand.AHEAD
        return ProgressArc(start_angle=0.0, end_angle=angle, band=band)
    return ProgressArc(
        start_angle=-_LEVEL_HALF_WIDTH, end_angle=_LEVEL_HALF_WIDTH, band=GaugeBand.AHEAD
    )
