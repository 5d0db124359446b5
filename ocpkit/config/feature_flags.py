"""
ocpkit - Feature Flags
======================

Laufzeit-Schalter für optionale Kernel-Checks und Debug-Ausgaben.
Defaults sind die Produktionswerte; Tests setzen sie über conftest.py zurück.
"""

from typing import Dict

FEATURE_FLAGS: Dict[str, bool] = {
    # Debug-Modi
    "kernel_debug_logging": False,  # Jeder OCP-Aufruf wird geloggt (sehr verbose)

    # Boolean Robustness
    "boolean_self_intersection_check": True,  # Pre-Check: BOPAlgo_CheckerSI vor Booleans
    "boolean_argument_analyzer": True,  # Pre-Check: BOPAlgo_ArgumentAnalyzer Input-Validierung
    "boolean_post_validation": True,  # Post-Check: BRepCheck_Analyzer + ShapeFix nach Booleans
    "boolean_tolerance_monitoring": True,  # Post-Check: ShapeAnalysis_ShapeTolerance nach Booleans
    "ocp_advanced_flags": True,  # SetFuzzyValue + SetRunParallel

    # Builder-Validierung
    "builder_result_validation": True,  # BRepCheck_Analyzer auf Fillet/Shell/Loft Ergebnissen

    # Tessellation
    "parallel_meshing": True,  # BRepMesh_IncrementalMesh mit isInParallel=True
}


def is_enabled(flag: str) -> bool:
    """
    Prüft ob ein Feature-Flag aktiviert ist.

    Args:
        flag: Name des Feature-Flags

    Returns:
        True wenn aktiviert, False wenn nicht aktiviert oder unbekannt
    """
    return FEATURE_FLAGS.get(flag, False)


def set_flag(flag: str, value: bool) -> None:
    """
    Setzt ein Feature-Flag zur Laufzeit.
    Nützlich für Tests und Debugging.

    Args:
        flag: Name des Feature-Flags
        value: Neuer Wert
    """
    FEATURE_FLAGS[flag] = value


def get_all_flags() -> Dict[str, bool]:
    """Gibt alle Feature-Flags zurück."""
    return FEATURE_FLAGS.copy()
