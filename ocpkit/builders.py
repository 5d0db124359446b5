"""
ocpkit - Builder
================

Akkumulieren-dann-Bauen für Wire, Fillet, Shell, Loft und Compound.

Zustandsmaschine (für alle Builder gleich):

    ACCUMULATING --build() ok--> BUILT
    ACCUMULATING --build() Fehler--> ACCUMULATING (Eingaben bleiben erhalten)

Jede Mutation oder ein zweites build() nach erfolgreichem Bau wirft
BuilderConsumed. Builder sind damit explizit One-Shot.

Usage:
    from ocpkit.builders import FilletBuilder

    rounded = FilletBuilder(body).add_all(0.1, body.edges()).build()
"""

from enum import Enum
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from OCP.BRep import BRep_Builder
from OCP.BRepBuilderAPI import (
    BRepBuilderAPI_MakeWire, BRepBuilderAPI_WireDone,
    BRepBuilderAPI_EmptyWire, BRepBuilderAPI_DisconnectedWire,
    BRepBuilderAPI_NonManifoldWire,
)
from OCP.BRepCheck import BRepCheck_Analyzer
from OCP.BRepFilletAPI import BRepFilletAPI_MakeFillet
from OCP.BRepGProp import BRepGProp
from OCP.BRepLib import BRepLib
from OCP.BRepOffset import BRepOffset_Mode
from OCP.BRepOffsetAPI import BRepOffsetAPI_MakeThickSolid, BRepOffsetAPI_ThruSections
from OCP.GeomAbs import GeomAbs_JoinType
from OCP.GProp import GProp_GProps
from OCP.TopAbs import TopAbs_EDGE, TopAbs_FACE, TopAbs_SOLID
from OCP.TopExp import TopExp, TopExp_Explorer
from OCP.TopoDS import TopoDS_Compound
from OCP.TopTools import TopTools_IndexedMapOfShape, TopTools_ListOfShape

from ocpkit.config.feature_flags import is_enabled
from ocpkit.config.tolerances import Tolerances
from ocpkit.errors import (
    BuilderConsumed, DisconnectedWire, FilletFailure, KernelError,
    LoftFailure, NullEntity, ShellFailure, TypeMismatch,
)
from ocpkit.shape import Edge, Face, Shape, Wire


_WIRE_ERRORS = {
    BRepBuilderAPI_WireDone: "ok",
    BRepBuilderAPI_EmptyWire: "leerer Wire",
    BRepBuilderAPI_DisconnectedWire: "Fragment hat keinen gemeinsamen Endpunkt mit der Kette",
    BRepBuilderAPI_NonManifoldWire: "Fragment erzeugt eine nicht-mannigfaltige Verzweigung",
}


class BuilderState(Enum):
    ACCUMULATING = "accumulating"
    BUILT = "built"


def _sub_shape_map(shape: Shape, topabs) -> TopTools_IndexedMapOfShape:
    shape_map = TopTools_IndexedMapOfShape()
    TopExp.MapShapes_s(shape.wrapped, topabs, shape_map)
    return shape_map


def _volume(topods) -> float:
    props = GProp_GProps()
    BRepGProp.VolumeProperties_s(topods, props)
    return props.Mass()


def _validate_result(topods, error_type, operation: str) -> None:
    """
    Post-Check für Builder-Ergebnisse (BRepCheck_Analyzer).

    Kein Auto-Healing: ein ungültiges Fillet/Shell/Loft ist ein Fehler des
    Aufrufers (Radius, Offset, Stationen) und wird gemeldet.
    """
    if topods is None or topods.IsNull():
        raise error_type(f"{operation}: Kernel lieferte ein leeres Ergebnis")

    if not is_enabled("builder_result_validation"):
        return

    if not BRepCheck_Analyzer(topods).IsValid():
        logger.warning(f"⚠️ {operation}: Ergebnis ungültig (BRepCheck_Analyzer)")
        raise error_type(f"{operation}: Ergebnis ist ungültig (selbstschneidend oder nicht-mannigfaltig)")


class _OneShotBuilder:
    """Basis: Zustand, Consumed-Guard und build()-Rahmen."""

    _operation = "Builder"
    _failure_type = KernelError

    def __init__(self):
        self._state = BuilderState.ACCUMULATING

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def is_built(self) -> bool:
        return self._state is BuilderState.BUILT

    def _ensure_accumulating(self, action: str) -> None:
        if self._state is BuilderState.BUILT:
            raise BuilderConsumed(f"{self._operation}.{action}() nach erfolgreichem build()")

    def build(self):
        """
        Baut das Ergebnis und verbraucht den Builder.

        Bei einem Fehler bleibt der Builder im Zustand ACCUMULATING und kann
        nach einer Korrektur erneut gebaut werden.
        """
        self._ensure_accumulating("build")
        try:
            result = self._build()
        except KernelError:
            raise
        except Exception as e:
            logger.error(f"{self._operation} Kernel-Exception: {e}")
            raise self._failure_type(f"{self._operation} fehlgeschlagen: {e}") from e

        self._state = BuilderState.BUILT
        logger.success(f"{self._operation} erstellt: {result!r}")
        return result

    def _build(self):
        raise NotImplementedError


# =============================================================================
# WireBuilder
# =============================================================================

class WireBuilder(_OneShotBuilder):
    """
    Sammelt Edges/Wires zu einem zusammenhängenden Wire.

    Jedes Fragment nach dem ersten muss einen Endpunkt mit der bisherigen
    Kette teilen; sonst DisconnectedWire, und das Fragment wird verworfen.
    """

    _operation = "WireBuilder"
    _failure_type = DisconnectedWire

    def __init__(self):
        super().__init__()
        self._fragments: List = []
        self._maker: Optional[BRepBuilderAPI_MakeWire] = None

    @property
    def fragments(self) -> Tuple:
        return tuple(self._fragments)

    @staticmethod
    def _make_wire(fragments) -> BRepBuilderAPI_MakeWire:
        maker = BRepBuilderAPI_MakeWire()
        for fragment in fragments:
            maker.Add(fragment.wrapped)
            if not maker.IsDone():
                break
        return maker

    def add(self, fragment) -> "WireBuilder":
        self._ensure_accumulating("add")
        if not isinstance(fragment, (Edge, Wire)):
            raise TypeMismatch(f"WireBuilder.add erwartet Edge oder Wire, bekam {type(fragment).__name__}")

        maker = self._make_wire(self._fragments + [fragment])
        if not maker.IsDone():
            error = maker.Error()
            raise DisconnectedWire(
                f"{_WIRE_ERRORS.get(error, error)}: {fragment!r}",
                context={"fragment_index": len(self._fragments)},
            )

        self._fragments.append(fragment)
        self._maker = maker
        return self

    def add_all(self, fragments: Iterable) -> "WireBuilder":
        for fragment in fragments:
            self.add(fragment)
        return self

    def _build(self) -> Wire:
        if self._maker is None:
            raise NullEntity("WireBuilder enthält keine Kanten")

        wire = self._maker.Wire()
        # 3D-Kurven sofort aufbauen (Kanten aus 2D-Kurven auf Flächen)
        BRepLib.BuildCurves3d_s(wire)
        return Wire(wire)


# =============================================================================
# FilletBuilder
# =============================================================================

class FilletBuilder(_OneShotBuilder):
    """
    Verrundet Kanten eines Shapes; alle Radien werden gleichzeitig angewendet.

    Radien und Kanten werden schon bei add() geprüft (positiv, Kante gehört
    zum Ausgangs-Shape). Unmögliche Radien meldet build().
    """

    _operation = "Fillet"
    _failure_type = FilletFailure

    def __init__(self, shape):
        super().__init__()
        self._shape = shape.as_shape()
        self._shape._require()
        self._edge_map = _sub_shape_map(self._shape, TopAbs_EDGE)
        self._fillets: List[Tuple[float, Edge]] = []

    @property
    def fillets(self) -> Tuple[Tuple[float, Edge], ...]:
        return tuple(self._fillets)

    def add(self, radius: float, edge: Edge) -> "FilletBuilder":
        self._ensure_accumulating("add")
        if radius <= 0:
            raise FilletFailure(f"Fillet-Radius muss positiv sein ({radius})", context={"radius": radius})
        if not self._edge_map.Contains(edge.wrapped):
            raise FilletFailure(f"{edge!r} gehört nicht zum Ausgangs-Shape")

        self._fillets.append((float(radius), edge))
        return self

    def add_all(self, radius: float, edges: Iterable[Edge]) -> "FilletBuilder":
        for edge in edges:
            self.add(radius, edge)
        return self

    def _build(self) -> Shape:
        if not self._fillets:
            raise FilletFailure("Keine Kanten für Fillet angegeben")

        fillet_op = BRepFilletAPI_MakeFillet(self._shape.wrapped)
        for radius, edge in self._fillets:
            fillet_op.Add(radius, edge.wrapped)

        fillet_op.Build()
        if not fillet_op.IsDone():
            max_radius = max(r for r, _ in self._fillets)
            raise FilletFailure(
                f"Fillet OCP-Operation fehlgeschlagen (max. Radius {max_radius:g})",
                context={"edges": len(self._fillets), "max_radius": max_radius},
            )

        result = fillet_op.Shape()
        _validate_result(result, FilletFailure, self._operation)
        logger.debug(f"Fillet: {len(self._fillets)} Kanten verrundet")
        return Shape(result)


# =============================================================================
# ShellBuilder
# =============================================================================

class ShellBuilder(_OneShotBuilder):
    """
    Aushöhlen (BRepOffsetAPI_MakeThickSolid): entfernt Faces und versetzt die übrigen.

    Negativer Offset = Wand nach innen.
    """

    _operation = "Shell"
    _failure_type = ShellFailure

    def __init__(self, shape):
        super().__init__()
        self._shape = shape.as_shape()
        self._shape._require()
        self._face_map = _sub_shape_map(self._shape, TopAbs_FACE)
        self._faces: List[Face] = []
        self._offset: float = 0.0
        self._tolerance: float = Tolerances.SHELL_TOLERANCE

    def faces_to_remove(self, faces: Iterable[Face]) -> "ShellBuilder":
        self._ensure_accumulating("faces_to_remove")
        faces = list(faces)
        for face in faces:
            if not self._face_map.Contains(face.wrapped):
                raise ShellFailure(f"{face!r} gehört nicht zum Ausgangs-Shape")
        self._faces.extend(faces)
        return self

    def offset(self, distance: float) -> "ShellBuilder":
        self._ensure_accumulating("offset")
        self._offset = float(distance)
        return self

    def tolerance(self, tolerance: float) -> "ShellBuilder":
        self._ensure_accumulating("tolerance")
        if tolerance <= 0:
            raise ShellFailure(f"Shell-Toleranz muss positiv sein ({tolerance})")
        self._tolerance = float(tolerance)
        return self

    def _build(self) -> Shape:
        if abs(self._offset) <= Tolerances.EPSILON_MATH:
            raise ShellFailure("Shell-Offset ist 0")

        faces_ocp = TopTools_ListOfShape()
        for face in self._faces:
            faces_ocp.Append(face.wrapped)

        shell_builder = BRepOffsetAPI_MakeThickSolid()
        # MakeThickSolidByJoin(S, ClosingFaces, Offset, Tol, Mode, Intersection, SelfInter, Join, RemoveIntEdges)
        shell_builder.MakeThickSolidByJoin(
            self._shape.wrapped,
            faces_ocp,
            self._offset,
            self._tolerance,
            BRepOffset_Mode.BRepOffset_Skin,
            False,
            False,
            GeomAbs_JoinType.GeomAbs_Arc,
            False,
        )

        if not shell_builder.IsDone():
            raise ShellFailure(
                f"Shell OCP-Operation fehlgeschlagen (offset={self._offset:g}, tol={self._tolerance:g})"
            )

        result = shell_builder.Shape()
        _validate_result(result, ShellFailure, self._operation)
        self._check_result(result)
        logger.debug(f"Shell: {len(self._faces)} Faces entfernt, offset={self._offset:g}")
        return Shape(result)

    def _check_result(self, result) -> None:
        """
        Plausibilität des Kernel-Ergebnisses.

        MakeThickSolidByJoin liefert bei unmöglichen Offsets teils das
        unveränderte Ausgangs-Solid zurück, das BRepCheck_Analyzer besteht.
        - entfernte Faces dürfen im Ergebnis nicht mehr vorkommen
        - negativer Offset: die Wand liegt innerhalb des Ausgangs-Solids,
          das Volumen muss also kleiner werden
        - positiver Offset: die Wand umschließt das Ausgangs-Solid, ihr Volumen
          ist nur als "verändert" prüfbar
        """
        result_faces = TopTools_IndexedMapOfShape()
        TopExp.MapShapes_s(result, TopAbs_FACE, result_faces)
        for face in self._faces:
            if result_faces.Contains(face.wrapped):
                raise ShellFailure(
                    f"Shell: zu entfernende Face ist noch im Ergebnis (offset={self._offset:g})"
                )

        if not TopExp_Explorer(self._shape.wrapped, TopAbs_SOLID).More():
            return

        vol_seed = _volume(self._shape.wrapped)
        vol_result = _volume(result)
        min_change = Tolerances.KERNEL_MIN_VOLUME_CHANGE
        logger.debug(f"Shell validation: vol_seed={vol_seed:.6g}, vol_result={vol_result:.6g}")

        if self._offset < 0 and vol_result > vol_seed - min_change:
            raise ShellFailure(
                f"Shell: Offset {self._offset:g} nach innen hat das Volumen nicht verringert "
                f"({vol_seed:.6g} -> {vol_result:.6g})",
                context={"offset": self._offset, "vol_seed": vol_seed, "vol_result": vol_result},
            )
        if self._offset > 0 and abs(vol_result - vol_seed) <= min_change:
            raise ShellFailure(
                f"Shell: Offset {self._offset:g} nach außen hat das Solid nicht verändert "
                f"({vol_seed:.6g} -> {vol_result:.6g})",
                context={"offset": self._offset, "vol_seed": vol_seed, "vol_result": vol_result},
            )


# =============================================================================
# Loft
# =============================================================================

class Loft(_OneShotBuilder):
    """
    Loft durch eine geordnete Folge von Stations-Wires (BRepOffsetAPI_ThruSections).
    """

    _operation = "Loft"
    _failure_type = LoftFailure

    def __init__(self, solid: bool = True):
        super().__init__()
        self._solid = bool(solid)
        self._ruled = False
        self._check_compatibility = True
        self._wires: List[Wire] = []

    @classmethod
    def new_solid(cls) -> "Loft":
        return cls(solid=True)

    @classmethod
    def new_surface(cls) -> "Loft":
        return cls(solid=False)

    @property
    def wires(self) -> Tuple[Wire, ...]:
        return tuple(self._wires)

    def add_wire(self, wire: Wire) -> "Loft":
        self._ensure_accumulating("add_wire")
        if not isinstance(wire, Wire):
            raise TypeMismatch(f"Loft erwartet Wire, bekam {type(wire).__name__}")
        self._wires.append(wire)
        return self

    def add_wires(self, wires: Iterable[Wire]) -> "Loft":
        for wire in wires:
            self.add_wire(wire)
        return self

    def ensure_wire_compatibility(self, enabled: bool) -> "Loft":
        """Automatische Umverteilung von Vertices/Kanten zwischen Stationen."""
        self._ensure_accumulating("ensure_wire_compatibility")
        self._check_compatibility = bool(enabled)
        return self

    def ruled(self, enabled: bool) -> "Loft":
        self._ensure_accumulating("ruled")
        self._ruled = bool(enabled)
        return self

    def _build(self) -> Shape:
        if len(self._wires) < 2:
            raise LoftFailure(f"Loft benötigt mindestens 2 Wires (hat {len(self._wires)})")

        loft_builder = BRepOffsetAPI_ThruSections(self._solid, self._ruled, Tolerances.LOFT_PRECISION)
        for i, wire in enumerate(self._wires):
            loft_builder.AddWire(wire.wrapped)
            if is_enabled("kernel_debug_logging"):
                logger.debug(f"Loft Section {i}: Wire hinzugefügt")

        loft_builder.CheckCompatibility(self._check_compatibility)
        loft_builder.Build()

        if not loft_builder.IsDone():
            raise LoftFailure(f"Loft OCP-Operation fehlgeschlagen ({len(self._wires)} Stationen)")

        result = loft_builder.Shape()
        _validate_result(result, LoftFailure, self._operation)
        return Shape(result)


# =============================================================================
# CompoundBuilder
# =============================================================================

class CompoundBuilder(_OneShotBuilder):
    """Reihenfolgetreue, unvalidierte Gruppierung beliebiger Shapes."""

    _operation = "Compound"

    def __init__(self):
        super().__init__()
        self._shapes: List[Shape] = []

    def __len__(self):
        return len(self._shapes)

    def add(self, entity) -> "CompoundBuilder":
        self._ensure_accumulating("add")
        shape = entity.as_shape()
        shape._require()
        self._shapes.append(shape)
        return self

    def add_all(self, entities: Iterable) -> "CompoundBuilder":
        for entity in entities:
            self.add(entity)
        return self

    def _build(self) -> Shape:
        builder = BRep_Builder()
        compound = TopoDS_Compound()
        builder.MakeCompound(compound)
        for shape in self._shapes:
            builder.Add(compound, shape.wrapped)
        return Shape(compound)
