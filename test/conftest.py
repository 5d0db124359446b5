import pytest

from ocpkit.config.feature_flags import set_flag


# Global Feature Flag Defaults - Single Source of Truth for Test Isolation
# ========================================================================
# WICHTIG: Jeder Test muss mit sauberen Feature-Flags starten.
# Diese Defaults müssen mit ocpkit/config/feature_flags.py synchron gehalten werden.
FEATURE_FLAG_DEFAULTS = {
    # Debug-Modi
    "kernel_debug_logging": False,

    # Boolean Robustness
    "boolean_self_intersection_check": True,
    "boolean_argument_analyzer": True,
    "boolean_post_validation": True,
    "boolean_tolerance_monitoring": True,
    "ocp_advanced_flags": True,

    # Builder-Validierung
    "builder_result_validation": True,

    # Tessellation
    "parallel_meshing": True,
}


@pytest.fixture(autouse=True)
def _global_feature_flag_isolation():
    """
    Globale Feature-Flag-Isolation.

    Stellt sicher, dass jeder Test mit sauberen, deterministischen
    Feature-Flags startet und keine Mutation in den nächsten Test leckt.
    """
    for key, value in FEATURE_FLAG_DEFAULTS.items():
        set_flag(key, value)

    yield

    for key, value in FEATURE_FLAG_DEFAULTS.items():
        set_flag(key, value)


# ---------------------------------------------------------------------------
# Gemeinsame Geometrie-Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def unit_cube():
    from ocpkit import Shape
    return Shape.box(1.0, 1.0, 1.0)


@pytest.fixture
def unit_cylinder():
    """Zylinder r=1, h=2 entlang +Z im Ursprung."""
    from ocpkit import Direction, Point, Shape
    return Shape.cylinder(Point.origin().plane_axis_with(Direction.z()), 1.0, 2.0)


@pytest.fixture
def square_wire():
    """Geschlossenes Quadrat 2x2 in der XY-Ebene."""
    from ocpkit import Edge, Point, Wire

    p = [Point(0, 0, 0), Point(2, 0, 0), Point(2, 2, 0), Point(0, 2, 0)]
    return Wire.new([Edge.line(p[i], p[(i + 1) % 4]) for i in range(4)])
