"""
ocpkit - Boolean Engine
=======================

fuse / subtract / intersect über zwei Shapes beliebigen Typs.

- Nicht-mutierend: Eingaben bleiben unverändert
- Fail-fast: kein Multi-Strategy-Fallback
- Pre-Checks (BOPAlgo_CheckerSI, BOPAlgo_ArgumentAnalyzer) per Feature-Flag
- Post-Validation + ShapeFix-Healing, Toleranz-Monitoring
- Leere Ergebnisse werden als EMPTY gemeldet, nicht als Erfolg

PERFORMANCE:
- VolumeCache: Volumen pro Operation nur einmal berechnen
"""

from typing import Any, Dict, Optional, Tuple

from loguru import logger

from OCP.BOPAlgo import BOPAlgo_ArgumentAnalyzer, BOPAlgo_CheckerSI
from OCP.BRepAlgoAPI import BRepAlgoAPI_Common, BRepAlgoAPI_Cut, BRepAlgoAPI_Fuse
from OCP.BRepCheck import BRepCheck_Analyzer
from OCP.BRepGProp import BRepGProp
from OCP.GProp import GProp_GProps
from OCP.ShapeAnalysis import ShapeAnalysis_ShapeTolerance
from OCP.ShapeFix import ShapeFix_Shape
from OCP.TopAbs import TopAbs_EDGE, TopAbs_FACE, TopAbs_SOLID, TopAbs_VERTEX
from OCP.TopExp import TopExp_Explorer
from OCP.TopTools import TopTools_ListOfShape

from ocpkit.config.feature_flags import is_enabled
from ocpkit.config.tolerances import Tolerances
from ocpkit.errors import NullEntity
from ocpkit.result_types import BooleanResult, ResultStatus
from ocpkit.shape import Shape


_OPERATIONS = {
    "fuse": BRepAlgoAPI_Fuse,
    "subtract": BRepAlgoAPI_Cut,
    "intersect": BRepAlgoAPI_Common,
}

# Aliase aus dem CAD-Sprachgebrauch
_ALIASES = {
    "join": "fuse",
    "union": "fuse",
    "cut": "subtract",
    "difference": "subtract",
    "common": "intersect",
}


def _dimension_topabs(topods) -> Optional[Any]:
    """Höchste enthaltene Dimension (Solid > Face > Edge > Vertex)."""
    for topabs in (TopAbs_SOLID, TopAbs_FACE, TopAbs_EDGE, TopAbs_VERTEX):
        if TopExp_Explorer(topods, topabs).More():
            return topabs
    return None


class VolumeCache:
    """
    Gecachte Volumen-Berechnungen.

    GProp VolumeProperties ist teuer; während einer Boolean-Operation wird
    das Volumen mehrfach gebraucht (Logging, Leer-Erkennung).
    Eine Instanz pro execute()-Aufruf: parallele Booleans teilen keinen Cache.
    Der Cache hält die Shapes selbst, damit id() während seiner Lebensdauer
    eindeutig bleibt.
    """

    def __init__(self):
        self._cache: Dict[int, Tuple[Any, float]] = {}

    def get_volume(self, topods) -> float:
        shape_id = id(topods)
        if shape_id not in self._cache:
            props = GProp_GProps()
            BRepGProp.VolumeProperties_s(topods, props)
            self._cache[shape_id] = (topods, props.Mass())
            logger.debug(f"VolumeCache MISS: shape_id={shape_id}, vol={props.Mass():.6g}")
        return self._cache[shape_id][1]

    def __contains__(self, topods) -> bool:
        return id(topods) in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self):
        self._cache.clear()


class BooleanEngine:
    """
    Boolean-Engine mit CAD-üblichen Defaults.

    execute() liefert immer ein BooleanResult; Shape.fuse/subtract/intersect
    rufen unwrap() und werfen BooleanOpFailure bei EMPTY/ERROR.
    """

    PRODUCTION_FUZZY_TOLERANCE = Tolerances.KERNEL_FUZZY
    MIN_VOLUME_CHANGE = Tolerances.KERNEL_MIN_VOLUME_CHANGE

    @staticmethod
    def normalize_operation(operation: str) -> str:
        op = operation.lower()
        return _ALIASES.get(op, op)

    @staticmethod
    def execute(
        shape1: Shape,
        shape2: Shape,
        operation: str,
        fuzzy_tolerance: Optional[float] = None
    ) -> BooleanResult:
        """
        Führt eine Boolean-Operation auf zwei Shapes aus.

        Args:
            shape1: Argument (Body)
            shape2: Tool
            operation: "fuse", "subtract" oder "intersect" (Aliase: join/cut/common)
            fuzzy_tolerance: Override der Default-Toleranz

        Returns:
            BooleanResult mit Shape als value (SUCCESS), EMPTY oder ERROR

        Raises:
            NullEntity: eines der Shapes ist null
        """
        op_type = BooleanEngine.normalize_operation(operation)
        if op_type not in _OPERATIONS:
            return BooleanResult.error(f"Unbekannte Boolean-Operation: {operation}", operation_type=op_type)

        if shape1 is None or shape2 is None or shape1.is_null() or shape2.is_null():
            raise NullEntity(f"Boolean {op_type}: null-Shape als Eingabe")

        if fuzzy_tolerance is None:
            fuzzy_tolerance = BooleanEngine.PRODUCTION_FUZZY_TOLERANCE

        volumes = VolumeCache()
        body, tool = shape1.wrapped, shape2.wrapped

        try:
            # 1. Pre-Boolean Checks
            for topods, name in ((body, "Body"), (tool, "Tool")):
                si_error = BooleanEngine._check_self_intersection(topods, name)
                if si_error:
                    return BooleanResult.error(si_error, operation_type=op_type)

            arg_warning = BooleanEngine._analyze_boolean_arguments(body, tool, fuzzy_tolerance)
            if arg_warning:
                logger.warning(f"Boolean Argument Analyse: {arg_warning}")

            # 2. OCP Boolean
            result_shape, history = BooleanEngine._execute_ocp_boolean(body, tool, op_type, fuzzy_tolerance)
            if result_shape is None:
                return BooleanResult.error(
                    f"Boolean {op_type} fehlgeschlagen: OpenCASCADE lieferte kein Ergebnis",
                    operation_type=op_type,
                )

            # 3. Leer-Erkennung
            empty_reason = BooleanEngine._detect_empty(body, tool, result_shape, op_type, volumes)
            if empty_reason:
                return BooleanResult.empty(
                    f"Boolean {op_type} erzeugte kein Ergebnis",
                    reason=empty_reason,
                    operation_type=op_type,
                ).log("Boolean")

            # 4. Post-Boolean Validation + Healing
            result_shape, healed = BooleanEngine._validate_and_heal_result(result_shape, op_type)
            BooleanEngine._check_tolerances(result_shape, op_type)

            if is_enabled("boolean_post_validation") and not BooleanEngine._is_valid_shape(result_shape):
                return BooleanResult.error(
                    f"Boolean {op_type} erzeugte ungültige Geometrie",
                    operation_type=op_type,
                )

            if healed:
                return BooleanResult.warning(
                    Shape(result_shape),
                    f"Boolean {op_type} erfolgreich (Ergebnis repariert)",
                    warnings=["ShapeFix_Shape wurde auf das Ergebnis angewendet"],
                    operation_type=op_type,
                    history=history,
                ).log("Boolean")

            logger.success(f"✅ Boolean {op_type} erfolgreich")
            return BooleanResult.success(
                Shape(result_shape),
                f"Boolean {op_type} completed successfully",
                operation_type=op_type,
                history=history,
            )

        except Exception as e:
            logger.error(f"❌ Boolean {op_type} unerwarteter Fehler: {e}")
            return BooleanResult.error(
                f"Unexpected error: {type(e).__name__}: {e}",
                exception=e,
                operation_type=op_type,
            )

    @staticmethod
    def _execute_ocp_boolean(
        shape1: Any,
        shape2: Any,
        op_type: str,
        fuzzy_tolerance: float
    ) -> Tuple[Optional[Any], Optional[Any]]:
        """
        OpenCASCADE Boolean mit expliziter API.

        - SetFuzzyValue: Toleranz für numerische Ungenauigkeiten
        - SetRunParallel: Multi-Threading im Kernel

        Returns:
            (result_shape, history) oder (None, None) bei Fehler
        """
        op = _OPERATIONS[op_type]()

        args_list = TopTools_ListOfShape()
        args_list.Append(shape1)
        tools_list = TopTools_ListOfShape()
        tools_list.Append(shape2)

        op.SetArguments(args_list)
        op.SetTools(tools_list)

        if is_enabled("ocp_advanced_flags"):
            op.SetFuzzyValue(fuzzy_tolerance)
            op.SetRunParallel(True)
        # HINWEIS: SetGlue bleibt aus (GlueOff); Glue-Optionen nur für bekannt überlappende Inputs

        op.Build()
        if is_enabled("kernel_debug_logging"):
            logger.debug(f"OCP Boolean {op_type}: IsDone={op.IsDone()}, fuzzy={fuzzy_tolerance}")

        if not op.IsDone():
            logger.warning(f"OpenCASCADE Boolean {op_type} returned IsDone=False")
            return None, None

        result_shape = op.Shape()
        if result_shape is None or result_shape.IsNull():
            logger.warning("OCP Boolean returned null shape")
            return None, None

        try:
            history = op.History()
        except Exception as hist_err:
            logger.debug(f"  History nicht verfügbar: {hist_err}")
            history = None

        return result_shape, history

    @staticmethod
    def _detect_empty(
        body: Any,
        tool: Any,
        result_shape: Any,
        op_type: str,
        volumes: Optional[VolumeCache] = None
    ) -> Optional[str]:
        """
        Leere Ergebnisse erkennen.

        - Ergebnis enthält nichts in der Dimension der Eingaben (z.B.
          Intersect zweier disjunkter Solids)
        - Subtract auf Solids ohne Volumenänderung (Tool überlappt nicht)

        Returns:
            Begründung wenn leer, sonst None
        """
        input_dim = _dimension_topabs(body)
        if input_dim is None or not TopExp_Explorer(result_shape, input_dim).More():
            return "Ergebnis enthält keine Geometrie in der Dimension der Eingaben"

        if op_type == "subtract" and input_dim == TopAbs_SOLID and _dimension_topabs(tool) == TopAbs_SOLID:
            if volumes is None:
                volumes = VolumeCache()
            vol_original = volumes.get_volume(body)
            vol_result = volumes.get_volume(result_shape)
            logger.info(
                f"  Cut validation: vol_original={vol_original:.6g}, vol_result={vol_result:.6g}, "
                f"MIN={BooleanEngine.MIN_VOLUME_CHANGE}"
            )
            if vol_result > vol_original - BooleanEngine.MIN_VOLUME_CHANGE:
                logger.warning(
                    f"⚠️ Cut ohne Volumenänderung: Vol {vol_original:.6g}→{vol_result:.6g}"
                )
                return "Tool überlappt den Body nicht (keine Volumenänderung)"

        return None

    @staticmethod
    def _is_valid_shape(shape: Any) -> bool:
        if shape is None:
            return False
        return BRepCheck_Analyzer(shape).IsValid()

    @staticmethod
    def _check_self_intersection(shape: Any, name: str = "Shape") -> Optional[str]:
        """
        Prüft Shape auf Self-Intersections mittels BOPAlgo_CheckerSI.

        Returns:
            Fehlermeldung wenn Self-Intersection gefunden, None wenn OK
        """
        if not is_enabled("boolean_self_intersection_check"):
            return None

        checker = BOPAlgo_CheckerSI()
        args = TopTools_ListOfShape()
        args.Append(shape)
        checker.SetArguments(args)
        checker.SetNonDestructive(True)  # Shape nicht modifizieren
        checker.Perform()

        if checker.HasErrors():
            logger.warning(f"⚠️ {name} hat Self-Intersection(s)!")
            return f"{name} hat Self-Intersections; Boolean-Ergebnis wäre nicht mannigfaltig"

        logger.debug(f"  {name} Self-Intersection Check: OK")
        return None

    @staticmethod
    def _analyze_boolean_arguments(shape1: Any, shape2: Any, fuzzy_tolerance: float) -> Optional[str]:
        """
        Analysiert Boolean-Inputs mittels BOPAlgo_ArgumentAnalyzer
        (überlappende Faces, zu kleine Shapes, inkonsistente Toleranzen).

        Returns:
            Warnung wenn Probleme gefunden, None wenn OK
        """
        if not is_enabled("boolean_argument_analyzer"):
            return None

        analyzer = BOPAlgo_ArgumentAnalyzer()
        analyzer.SetShape1(shape1)
        analyzer.SetShape2(shape2)
        analyzer.SetFuzzyValue(fuzzy_tolerance)
        analyzer.Perform()

        if analyzer.HasFaulty():
            return "Boolean-Inputs haben Kompatibilitätsprobleme"

        logger.debug("  Boolean Argument Analysis: OK")
        return None

    @staticmethod
    def _validate_and_heal_result(result_shape: Any, op_type: str) -> Tuple[Any, bool]:
        """
        Post-Boolean Validation: prüft das Ergebnis und versucht ShapeFix.

        Returns:
            (Shape, healed) - healed=True wenn ShapeFix angewendet wurde
        """
        if not is_enabled("boolean_post_validation"):
            return result_shape, False

        if BRepCheck_Analyzer(result_shape).IsValid():
            logger.debug("  Post-Boolean Validation: Shape ist valid")
            return result_shape, False

        logger.warning(f"⚠️ Boolean {op_type} Ergebnis ist ungültig, versuche ShapeFix...")
        fixer = ShapeFix_Shape(result_shape)
        fixer.SetPrecision(Tolerances.KERNEL_PRECISION)
        fixer.Perform()
        healed_shape = fixer.Shape()

        if BRepCheck_Analyzer(healed_shape).IsValid():
            logger.success("✅ ShapeFix hat Boolean-Ergebnis repariert")
        return healed_shape, True

    @staticmethod
    def _check_tolerances(result_shape: Any, op_type: str) -> None:
        """
        Toleranz-Monitoring nach Boolean-Operationen.

        Überhöhte lokale Toleranzen führen zu Fehlern bei nachfolgenden
        Fillets/Shells; hier wird nur gewarnt.
        """
        if not is_enabled("boolean_tolerance_monitoring"):
            return

        tol_analyzer = ShapeAnalysis_ShapeTolerance()
        tol_analyzer.AddTolerance(result_shape)

        # GlobalTolerance(1) = Maximum, GlobalTolerance(0) = Durchschnitt
        max_tol = tol_analyzer.GlobalTolerance(1)
        avg_tol = tol_analyzer.GlobalTolerance(0)
        threshold = Tolerances.KERNEL_TOLERANCE_WARNING

        if max_tol > threshold:
            logger.warning(
                f"⚠️ Boolean {op_type}: Erhöhte Toleranz erkannt! "
                f"Max={max_tol:.6f} (Schwellwert={threshold:.6f}), Avg={avg_tol:.6f}"
            )
        else:
            logger.debug(f"  Toleranz-Check OK: Max={max_tol:.6f}, Avg={avg_tol:.6f}")
