"""
BooleanEngine Test Suite
========================

Tests für die Boolean-Engine mit:
- fuse / subtract / intersect und Aliasen
- EMPTY-Erkennung (disjunkte Eingaben)
- Fail-Fast Error Handling
- Feature-Flag-gesteuerte Pre-/Post-Checks
- VolumeCache
"""
import threading

import pytest
import build123d as bd

from ocpkit.config.feature_flags import set_flag
from ocpkit.boolean_engine import BooleanEngine, VolumeCache
from ocpkit.errors import BooleanOpFailure, NullEntity
from ocpkit.result_types import BooleanResult, ResultStatus
from ocpkit.shape import Shape, ShapeType


def _box_at(x: float, y: float = 0.0, z: float = 0.0, size: float = 1.0) -> Shape:
    solid = bd.Solid.make_box(size, size, size).moved(bd.Location((x, y, z)))
    return Shape.from_build123d(solid)


# ============================================================================
# VolumeCache Tests
# ============================================================================

class TestVolumeCache:
    """Tests für VolumeCache."""

    def test_volume_cache_hit_miss(self, unit_cube):
        """Volume Cache: HIT nach erstem Aufruf."""
        cache = VolumeCache()
        topods = unit_cube.wrapped

        vol1 = cache.get_volume(topods)
        assert vol1 == pytest.approx(1.0)

        vol2 = cache.get_volume(topods)
        assert vol2 == vol1
        assert topods in cache
        assert len(cache) == 1

    def test_volume_cache_clear(self, unit_cube):
        cache = VolumeCache()
        cache.get_volume(unit_cube.wrapped)
        cache.clear()
        assert len(cache) == 0

    def test_caches_are_independent(self, unit_cube):
        """Jede Boolean-Operation hat ihren eigenen Cache."""
        a, b = VolumeCache(), VolumeCache()
        a.get_volume(unit_cube.wrapped)
        assert len(b) == 0
        b.clear()
        assert unit_cube.wrapped in a


# ============================================================================
# Operationen
# ============================================================================

class TestOperations:

    def test_fuse_overlapping(self):
        result = BooleanEngine.execute(_box_at(0), _box_at(0.5), "fuse")
        assert isinstance(result, BooleanResult)
        assert result.status == ResultStatus.SUCCESS
        assert result.operation_type == "fuse"
        assert result.value.mass() == pytest.approx(1.5, rel=1e-6)

    def test_fuse_is_commutative_in_mass(self, unit_cube, unit_cylinder):
        ab = unit_cube.fuse(unit_cylinder).mass()
        ba = unit_cylinder.fuse(unit_cube).mass()
        assert ab == pytest.approx(ba, rel=1e-6)

    def test_subtract(self):
        result = _box_at(0).subtract(_box_at(0.5))
        assert result.mass() == pytest.approx(0.5, rel=1e-6)
        assert result.is_valid()

    def test_intersect(self):
        result = _box_at(0).intersect(_box_at(0.5))
        assert result.mass() == pytest.approx(0.5, rel=1e-6)

    def test_inputs_unchanged(self):
        a, b = _box_at(0), _box_at(0.5)
        a.fuse(b)
        a.subtract(b)
        assert a.mass() == pytest.approx(1.0)
        assert b.mass() == pytest.approx(1.0)
        assert len(a.faces().to_list()) == 6

    def test_fuse_disjoint_is_valid(self):
        """Zwei disjunkte Solids vereinigen ist kein leeres Ergebnis."""
        fused = _box_at(0).fuse(_box_at(5))
        assert fused.mass() == pytest.approx(2.0, rel=1e-6)
        assert fused.is_valid()

    def test_cylinder_through_box(self):
        from ocpkit.geom import Direction, Point
        box = _box_at(-1, -1, 0, size=2.0)
        drill = Shape.cylinder(Point(0, 0, -1).plane_axis_with(Direction.z()), 0.5, 4.0)
        holed = box.subtract(drill)
        assert holed.mass() == pytest.approx(8.0 - 3.14159265 * 0.25 * 2.0, rel=1e-4)

    def test_history_available(self):
        result = BooleanEngine.execute(_box_at(0), _box_at(0.5), "fuse")
        assert result.history is not None


# ============================================================================
# Leere Ergebnisse
# ============================================================================

class TestEmptyResults:

    def test_intersect_disjoint_is_empty(self):
        result = BooleanEngine.execute(_box_at(0), _box_at(5), "intersect")
        assert result.status == ResultStatus.EMPTY
        assert result.is_empty
        assert result.value is None
        assert "reason" in result.details

    def test_intersect_disjoint_raises(self):
        with pytest.raises(BooleanOpFailure) as exc_info:
            _box_at(0).intersect(_box_at(5))
        assert exc_info.value.context["status"] == "EMPTY"

    def test_subtract_without_overlap_is_empty(self):
        result = BooleanEngine.execute(_box_at(0), _box_at(5), "subtract")
        assert result.status == ResultStatus.EMPTY

    def test_subtract_without_overlap_raises(self):
        with pytest.raises(BooleanOpFailure):
            _box_at(0).subtract(_box_at(5))


# ============================================================================
# Fehlerbehandlung
# ============================================================================

class TestErrorHandling:

    def test_unknown_operation(self, unit_cube):
        result = BooleanEngine.execute(unit_cube, unit_cube, "xor")
        assert result.status == ResultStatus.ERROR
        with pytest.raises(BooleanOpFailure):
            result.unwrap()

    def test_kernel_failure_is_reported(self):
        """IsDone=False des Kernels ergibt einen regulären Fehler, keine AttributeError."""
        from ocpkit.geom import Point
        from ocpkit.shape import Edge

        edge = Edge.line(Point(0.5, 0.5, -1), Point(0.5, 0.5, 2)).as_shape()
        with pytest.raises(BooleanOpFailure) as exc_info:
            Shape.box(1, 1, 1).fuse(edge)
        message = str(exc_info.value)
        assert "AttributeError" not in message
        assert "kein Ergebnis" in message

    def test_null_input(self, unit_cube):
        with pytest.raises(NullEntity):
            BooleanEngine.execute(unit_cube, Shape(), "fuse")

    @pytest.mark.parametrize("alias,canonical", [
        ("join", "fuse"),
        ("union", "fuse"),
        ("cut", "subtract"),
        ("difference", "subtract"),
        ("common", "intersect"),
        ("FUSE", "fuse"),
    ])
    def test_aliases(self, alias, canonical):
        assert BooleanEngine.normalize_operation(alias) == canonical

    def test_alias_execution(self):
        result = BooleanEngine.execute(_box_at(0), _box_at(0.5), "cut")
        assert result.is_success
        assert result.operation_type == "subtract"


# ============================================================================
# Feature Flags
# ============================================================================

class TestFeatureFlags:

    def test_all_checks_disabled(self):
        for flag in (
            "boolean_self_intersection_check",
            "boolean_argument_analyzer",
            "boolean_post_validation",
            "boolean_tolerance_monitoring",
            "ocp_advanced_flags",
        ):
            set_flag(flag, False)

        result = BooleanEngine.execute(_box_at(0), _box_at(0.5), "fuse")
        assert result.status == ResultStatus.SUCCESS
        assert result.value.mass() == pytest.approx(1.5, rel=1e-6)

    def test_custom_fuzzy_tolerance(self):
        result = BooleanEngine.execute(_box_at(0), _box_at(0.5), "intersect", fuzzy_tolerance=1e-5)
        assert result.is_success
        assert result.value.shape_type() in (ShapeType.COMPOUND, ShapeType.SOLID)


# ============================================================================
# Thread Safety
# ============================================================================

class TestThreadSafety:
    """Booleans auf getrennten Shapes dürfen parallel laufen."""

    def test_parallel_subtract(self):
        errors = []

        def worker():
            try:
                for _ in range(10):
                    result = _box_at(0).subtract(_box_at(0.5))
                    assert result.mass() == pytest.approx(0.5, rel=1e-6)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
